"""Tests for the engine helpers used by the CLI preflight."""

import pytest

from election_load.db import database
from election_load.errors import StoreUnavailableError


class TestDatabaseHelpers:
    def test_session_factory_bound_to_engine(self):
        assert database.async_session_factory.kw["bind"] is database.engine
        assert database.async_session_factory.kw["expire_on_commit"] is False

    @pytest.mark.asyncio
    async def test_ensure_db_raises_when_unreachable(self, monkeypatch):
        async def unreachable() -> bool:
            return False

        monkeypatch.setattr(database, "check_db", unreachable)
        with pytest.raises(StoreUnavailableError, match="database unreachable"):
            await database.ensure_db()

    @pytest.mark.asyncio
    async def test_ensure_db_passes_when_reachable(self, monkeypatch):
        async def reachable() -> bool:
            return True

        monkeypatch.setattr(database, "check_db", reachable)
        assert await database.ensure_db() is None
