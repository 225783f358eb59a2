"""The weighted operation catalog for the election results store."""

from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from election_load.operations import queries
from election_load.operations.params import ParameterGenerator
from election_load.workload.models import Operation

DEFAULT_WEIGHTS: dict[str, int] = {
    "read_votes": 40,
    "read_candidates": 25,
    "read_regions": 15,
    "complex_queries": 15,
    "write_feedback": 5,
}

SessionWork = Callable[[AsyncSession], Awaitable[int]]


def _in_session(
    session_factory: async_sessionmaker[AsyncSession], work: Callable[[], SessionWork]
) -> Callable[[], Awaitable[int]]:
    """Wrap ``work`` so every execution gets a fresh session and fresh parameters."""

    async def execute() -> int:
        bound = work()
        async with session_factory() as session:
            return await bound(session)

    return execute


def build_catalog(
    session_factory: async_sessionmaker[AsyncSession],
    params: ParameterGenerator | None = None,
    weights: dict[str, int] | None = None,
) -> list[Operation]:
    """Return the election operations, skipping any whose weight is zero."""
    params = params or ParameterGenerator()
    weights = {**DEFAULT_WEIGHTS, **(weights or {})}
    unknown = set(weights) - set(DEFAULT_WEIGHTS)
    if unknown:
        raise ValueError(f"unknown operations in weights: {sorted(unknown)}")
    negative = sorted(name for name, weight in weights.items() if weight < 0)
    if negative:
        raise ValueError(f"operation weights must be >= 0: {negative}")

    def read_votes() -> SessionWork:
        position, code = params.position(), params.county_code()
        return lambda s: queries.votes_by_position_and_county(s, position, code)

    def read_candidates() -> SessionWork:
        position = params.position()
        return lambda s: queries.candidates_by_position(s, position)

    def read_regions() -> SessionWork:
        region_type = params.region_type()
        return lambda s: queries.regions_by_type(s, region_type)

    def complex_queries() -> SessionWork:
        position = params.position()
        return lambda s: queries.top_regions_by_votes(s, position)

    def write_feedback() -> SessionWork:
        feedback_type = params.feedback_type()
        message, email = params.feedback_message()
        return lambda s: queries.feedback_round_trip(s, feedback_type, message, email)

    factories: dict[str, Callable[[], SessionWork]] = {
        "read_votes": read_votes,
        "read_candidates": read_candidates,
        "read_regions": read_regions,
        "complex_queries": complex_queries,
        "write_feedback": write_feedback,
    }
    return [
        Operation(name=name, weight=weight, execute=_in_session(session_factory, factories[name]))
        for name, weight in weights.items()
        if weight > 0
    ]
