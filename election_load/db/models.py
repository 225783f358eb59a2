"""SQLAlchemy ORM mappings for the election results schema.

Column names follow the existing camelCase schema; attributes are snake_case.
Only the tables the load operations touch are mapped.
"""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Position(StrEnum):
    PRESIDENT = "PRESIDENT"
    GOVERNOR = "GOVERNOR"
    SENATOR = "SENATOR"
    MP = "MP"
    WOMAN_REPRESENTATIVE = "WOMAN_REPRESENTATIVE"
    COUNTY_ASSEMBLY_MEMBER = "COUNTY_ASSEMBLY_MEMBER"


class RegionType(StrEnum):
    NATIONAL = "NATIONAL"
    COUNTY = "COUNTY"
    CONSTITUENCY = "CONSTITUENCY"
    WARD = "WARD"
    POLLING_STATION = "POLLING_STATION"


class VoteSource(StrEnum):
    KIEMS = "KIEMS"
    MANUAL = "MANUAL"
    CORRECTED = "CORRECTED"


class ElectionState(StrEnum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CERTIFIED = "CERTIFIED"


def _cuid() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_cuid)
    name: Mapped[str] = mapped_column(String)
    code: Mapped[str] = mapped_column(String, unique=True)
    type: Mapped[RegionType] = mapped_column(Enum(RegionType, name="RegionType"))
    parent_id: Mapped[str | None] = mapped_column(
        "parentId", ForeignKey("regions.id", ondelete="SET NULL"), nullable=True
    )
    geojson: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    registered_voters: Mapped[int] = mapped_column("registeredVoters", Integer, default=0)
    is_active: Mapped[bool] = mapped_column("isActive", Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=func.now(), onupdate=func.now()
    )

    candidates: Mapped[list["Candidate"]] = relationship(back_populates="region")
    votes: Mapped[list["Vote"]] = relationship(back_populates="region")


class Candidate(Base):
    __tablename__ = "candidates"
    __table_args__ = (UniqueConstraint("name", "party", "position", "regionId"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_cuid)
    name: Mapped[str] = mapped_column(String)
    party: Mapped[str] = mapped_column(String)
    position: Mapped[Position] = mapped_column(Enum(Position, name="Position"))
    region_id: Mapped[str] = mapped_column("regionId", ForeignKey("regions.id"))
    region_type: Mapped[RegionType] = mapped_column(
        "regionType", Enum(RegionType, name="RegionType")
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column("photoUrl", String, nullable=True)
    is_active: Mapped[bool] = mapped_column("isActive", Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=func.now(), onupdate=func.now()
    )

    region: Mapped[Region] = relationship(back_populates="candidates")
    votes: Mapped[list["Vote"]] = relationship(back_populates="candidate")


class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (UniqueConstraint("candidateId", "regionId", "position", "timestamp"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_cuid)
    candidate_id: Mapped[str] = mapped_column(
        "candidateId", ForeignKey("candidates.id", ondelete="CASCADE")
    )
    region_id: Mapped[str] = mapped_column(
        "regionId", ForeignKey("regions.id", ondelete="CASCADE")
    )
    position: Mapped[Position] = mapped_column(Enum(Position, name="Position"))
    vote_count: Mapped[int] = mapped_column("voteCount", Integer)
    source: Mapped[VoteSource] = mapped_column(
        Enum(VoteSource, name="VoteSource"), default=VoteSource.KIEMS
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    checksum: Mapped[str | None] = mapped_column(String, nullable=True)
    is_verified: Mapped[bool] = mapped_column("isVerified", Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=func.now(), onupdate=func.now()
    )

    candidate: Mapped[Candidate] = relationship(back_populates="votes")
    region: Mapped[Region] = relationship(back_populates="votes")


class ElectionStatus(Base):
    __tablename__ = "election_status"
    __table_args__ = (UniqueConstraint("position", "regionId"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_cuid)
    position: Mapped[Position] = mapped_column(Enum(Position, name="Position"))
    region_id: Mapped[str] = mapped_column("regionId", ForeignKey("regions.id"))
    status: Mapped[ElectionState] = mapped_column(
        Enum(ElectionState, name="ElectionStatusEnum"), default=ElectionState.NOT_STARTED
    )
    start_time: Mapped[datetime | None] = mapped_column("startTime", DateTime, nullable=True)
    end_time: Mapped[datetime | None] = mapped_column("endTime", DateTime, nullable=True)
    total_stations: Mapped[int] = mapped_column("totalStations", Integer, default=0)
    reporting_stations: Mapped[int] = mapped_column("reportingStations", Integer, default=0)
    total_votes: Mapped[int] = mapped_column("totalVotes", Integer, default=0)
    last_update: Mapped[datetime] = mapped_column(
        "lastUpdate", DateTime, server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=func.now(), onupdate=func.now()
    )


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_cuid)
    type: Mapped[str] = mapped_column(String)
    message: Mapped[str] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    user_agent: Mapped[str | None] = mapped_column("userAgent", String, nullable=True)
    ip_address: Mapped[str | None] = mapped_column("ipAddress", String, nullable=True)
    is_resolved: Mapped[bool] = mapped_column("isResolved", Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=func.now(), onupdate=func.now()
    )
