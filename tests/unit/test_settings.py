"""Tests for application configuration."""

from election_load.config import Settings


class TestSettings:
    def test_default_settings(self):
        settings = Settings()
        assert settings.app_name == "election-loadtest"
        assert settings.app_version == "0.1.0"
        assert settings.default_profile == "standard"

    def test_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("REPORT_PATH", "/tmp/report.json")
        monkeypatch.setenv("DB_POOL_SIZE", "40")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("RANDOM_SEED", "5")
        monkeypatch.setenv("JSON_LOGS", "true")
        monkeypatch.setenv("MONITOR_INTERVAL_S", "0.5")
        settings = Settings()
        assert settings.report_path == "/tmp/report.json"
        assert settings.db_pool_size == 40
        assert settings.debug is True
        assert settings.random_seed == 5
        assert settings.json_logs is True
        assert settings.monitor_interval_s == 0.5

    def test_database_url_default(self):
        settings = Settings()
        assert "postgresql+asyncpg" in settings.database_url
