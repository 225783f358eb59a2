"""ORM queries issued against the election store.

Each coroutine takes an open ``AsyncSession`` and returns how many rows it
read or wrote. Errors propagate; callers decide whether they are fatal.
"""

from collections.abc import Sequence

import structlog
from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from election_load.db.models import (
    Candidate,
    ElectionStatus,
    Feedback,
    Position,
    Region,
    RegionType,
    Vote,
)

logger = structlog.get_logger()


async def _bounded_children(
    session: AsyncSession, model, parent_column, parent_ids: Sequence[str], per_parent: int
) -> int:
    """Load at most ``per_parent * len(parent_ids)`` child rows for the given parents."""
    if not parent_ids:
        return 0
    stmt = (
        select(model)
        .where(parent_column.in_(parent_ids))
        .limit(per_parent * len(parent_ids))
    )
    rows = (await session.execute(stmt)).scalars().all()
    return len(rows)


async def votes_by_position_and_county(
    session: AsyncSession, position: Position, county_code: str, limit: int = 100
) -> int:
    stmt = (
        select(Vote)
        .join(Vote.region)
        .where(Vote.position == position, Region.code == county_code)
        .options(selectinload(Vote.candidate), selectinload(Vote.region))
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return len(rows)


async def votes_by_position(session: AsyncSession, position: Position, limit: int) -> int:
    stmt = (
        select(Vote)
        .where(Vote.position == position)
        .options(selectinload(Vote.candidate))
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return len(rows)


async def candidates_by_position(
    session: AsyncSession, position: Position, limit: int = 50, votes_each: int = 10
) -> int:
    stmt = (
        select(Candidate)
        .where(Candidate.position == position)
        .options(selectinload(Candidate.region))
        .limit(limit)
    )
    candidates = (await session.execute(stmt)).scalars().all()
    await _bounded_children(
        session, Vote, Vote.candidate_id, [c.id for c in candidates], votes_each
    )
    return len(candidates)


async def regions_by_type(
    session: AsyncSession,
    region_type: RegionType,
    limit: int = 20,
    candidates_each: int = 5,
    votes_each: int = 10,
) -> int:
    stmt = select(Region).where(Region.type == region_type).limit(limit)
    regions = (await session.execute(stmt)).scalars().all()
    ids = [r.id for r in regions]
    await _bounded_children(session, Candidate, Candidate.region_id, ids, candidates_each)
    await _bounded_children(session, Vote, Vote.region_id, ids, votes_each)
    return len(regions)


async def top_regions_by_votes(session: AsyncSession, position: Position, limit: int = 10) -> int:
    """Sum and count votes per region for one position, highest totals first."""
    total = func.sum(Vote.vote_count).label("total_votes")
    stmt = (
        select(Vote.region_id, total, func.count(Vote.id).label("vote_rows"))
        .where(Vote.position == position)
        .group_by(Vote.region_id)
        .order_by(desc(total))
        .limit(limit)
    )
    rows = (await session.execute(stmt)).all()
    return len(rows)


async def vote_summary_by_position(session: AsyncSession) -> int:
    stmt = select(
        Vote.position, func.sum(Vote.vote_count), func.count(Vote.id)
    ).group_by(Vote.position)
    rows = (await session.execute(stmt)).all()
    return len(rows)


async def active_candidates_named(session: AsyncSession, fragment: str) -> int:
    stmt = (
        select(Candidate)
        .where(Candidate.name.contains(fragment), Candidate.is_active.is_(True))
        .options(selectinload(Candidate.votes))
    )
    rows = (await session.execute(stmt)).scalars().all()
    return len(rows)


async def active_candidates(session: AsyncSession, limit: int = 20) -> int:
    stmt = select(Candidate).where(Candidate.is_active.is_(True)).limit(limit)
    rows = (await session.execute(stmt)).scalars().all()
    return len(rows)


async def all_election_statuses(session: AsyncSession) -> int:
    rows = (await session.execute(select(ElectionStatus))).scalars().all()
    return len(rows)


async def region_by_code(session: AsyncSession, code: str) -> int:
    stmt = select(Region).where(Region.code == code).limit(1)
    row = (await session.execute(stmt)).scalars().first()
    return 0 if row is None else 1


async def feedback_round_trip(
    session: AsyncSession, feedback_type: str, message: str, email: str | None = None
) -> int:
    """Insert a feedback row and delete it again, leaving no residue.

    If the delete fails after the insert was committed, the session is rolled
    back and the row is deleted by id once more before the original error is
    re-raised. A row is only left behind when that second delete fails too,
    and it is logged as ``feedback_cleanup_failed``.
    """
    feedback = Feedback(type=feedback_type, message=message, email=email)
    session.add(feedback)
    await session.commit()
    feedback_id = feedback.id

    try:
        await session.delete(feedback)
        await session.commit()
    except Exception:
        await session.rollback()
        try:
            await session.execute(delete(Feedback).where(Feedback.id == feedback_id))
            await session.commit()
        except Exception:
            logger.warning("feedback_cleanup_failed", feedback_id=feedback_id, exc_info=True)
        raise
    return 1
