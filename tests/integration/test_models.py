"""Integration tests for the ORM mappings of the election schema."""

import pytest

pytestmark = pytest.mark.integration


class TestElectionModels:
    def test_models_importable(self):
        from election_load.db.models import Candidate, ElectionStatus, Feedback, Region, Vote

        assert Region.__tablename__ == "regions"
        assert Candidate.__tablename__ == "candidates"
        assert Vote.__tablename__ == "votes"
        assert ElectionStatus.__tablename__ == "election_status"
        assert Feedback.__tablename__ == "feedback"

    def test_vote_columns_use_schema_names(self):
        from election_load.db.models import Vote

        columns = {c.name for c in Vote.__table__.columns}
        assert {"candidateId", "regionId", "position", "voteCount", "isVerified"} <= columns

    def test_feedback_model_fields(self):
        from election_load.db.models import Feedback

        columns = {c.name for c in Feedback.__table__.columns}
        assert {"id", "type", "message", "email", "isResolved", "updatedAt"} <= columns

    def test_foreign_keys(self):
        from election_load.db.models import Candidate, Vote

        vote_fks = {fk.target_fullname for fk in Vote.__table__.foreign_keys}
        assert vote_fks == {"candidates.id", "regions.id"}
        candidate_fks = {fk.target_fullname for fk in Candidate.__table__.foreign_keys}
        assert candidate_fks == {"regions.id"}

    def test_unique_constraints(self):
        from sqlalchemy import UniqueConstraint

        from election_load.db.models import Candidate, ElectionStatus

        def unique_sets(model):
            return {
                frozenset(col.name for col in c.columns)
                for c in model.__table__.constraints
                if isinstance(c, UniqueConstraint)
            }

        assert frozenset({"name", "party", "position", "regionId"}) in unique_sets(Candidate)
        assert frozenset({"position", "regionId"}) in unique_sets(ElectionStatus)

    def test_position_enum_matches_schema(self):
        from election_load.db.models import Position

        assert [p.value for p in Position] == [
            "PRESIDENT",
            "GOVERNOR",
            "SENATOR",
            "MP",
            "WOMAN_REPRESENTATIVE",
            "COUNTY_ASSEMBLY_MEMBER",
        ]
