"""Fixed-shape database probes: the four-phase stress suite and the smoke check.

Unlike the weighted batched workload these run a predetermined sequence of
queries and print recommendations based on simple latency thresholds.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from election_load.db.models import Position
from election_load.operations import queries
from election_load.shared.console import progress
from election_load.workload.models import Result

logger = structlog.get_logger()

SUITE_COUNTY_CODES = ("001", "032", "047", "042", "022")
CANDIDATE_NAME_FRAGMENT = "Ruto"

READ_LATENCY_WARN_MS = 100.0
WRITE_LATENCY_WARN_MS = 200.0
POOL_SUCCESS_WARN_PCT = 95.0

SMOKE_READ_WARN_MS = 1000.0
SMOKE_CONCURRENT_WARN_MS = 100.0
SMOKE_WRITE_WARN_MS = 500.0
SMOKE_CONCURRENT_QUERIES = 20


@dataclass
class PhaseResult:
    name: str
    results: list[Result]
    total_time_ms: float

    @property
    def success_rate(self) -> float:
        if not self.results:
            return 0.0
        return sum(1 for r in self.results if r.success) / len(self.results) * 100.0

    @property
    def avg_response_ms(self) -> float:
        if not self.results:
            return 0.0
        return sum(r.duration_ms for r in self.results) / len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.name,
            "requests": len(self.results),
            "succeeded": self.succeeded,
            "success_rate": round(self.success_rate, 2),
            "avg_response_ms": round(self.avg_response_ms, 2),
            "total_time_ms": round(self.total_time_ms, 2),
        }


@dataclass
class SuiteReport:
    phases: list[PhaseResult]
    total_time_ms: float
    recommendations: list[str] = field(default_factory=list)

    def phase(self, name: str) -> PhaseResult:
        for p in self.phases:
            if p.name == name:
                return p
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phases": [p.to_dict() for p in self.phases],
            "total_time_s": round(self.total_time_ms / 1000.0, 2),
            "recommendations": self.recommendations,
        }


class DatabaseStressSuite:
    """Concurrent reads, sequential writes, a pool probe and a mixed phase."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def _timed(self, name: str, work: Callable[[AsyncSession], Awaitable[int]]) -> Result:
        t0 = self._clock()
        try:
            async with self._session_factory() as session:
                count = await work(session)
        except Exception as exc:
            logger.debug("suite_request_failed", phase=name, error=str(exc))
            return Result.failed(name, (self._clock() - t0) * 1000.0, str(exc) or type(exc).__name__)
        return Result.succeeded(name, (self._clock() - t0) * 1000.0, count)

    @staticmethod
    def read_query(index: int) -> Callable[[AsyncSession], Awaitable[int]]:
        """Read ``index`` cycles through four query shapes and five county codes."""
        code = SUITE_COUNTY_CODES[index % len(SUITE_COUNTY_CODES)]
        kind = index % 4
        if kind == 0:
            return lambda s: queries.votes_by_position_and_county(s, Position.PRESIDENT, code)
        if kind == 1:
            return lambda s: queries.votes_by_position_and_county(s, Position.GOVERNOR, code)
        if kind == 2:
            return lambda s: queries.active_candidates_named(s, CANDIDATE_NAME_FRAGMENT)
        return queries.all_election_statuses

    async def concurrent_reads(self, count: int = 100) -> PhaseResult:
        progress(f"Testing {count} concurrent database reads...")
        start = self._clock()
        results = await asyncio.gather(
            *(self._timed("concurrent_reads", self.read_query(i)) for i in range(count))
        )
        return self._finish("concurrent_reads", list(results), start)

    async def sequential_writes(self, count: int = 20) -> PhaseResult:
        progress(f"Testing {count} write operations...")
        start = self._clock()
        results = []
        for i in range(count):
            results.append(
                await self._timed(
                    "writes",
                    lambda s, i=i: queries.feedback_round_trip(
                        s, "test", f"Load test feedback {i}", f"test{i}@loadtest.com"
                    ),
                )
            )
        return self._finish("writes", results, start)

    async def connection_pool(self, count: int = 50) -> PhaseResult:
        progress(f"Testing connection pool with {count} connections...")
        start = self._clock()
        results = await asyncio.gather(
            *(
                self._timed("connection_pool", lambda s: queries.region_by_code(s, "001"))
                for _ in range(count)
            )
        )
        return self._finish("connection_pool", list(results), start)

    async def mixed_operations(self, count: int = 30) -> PhaseResult:
        progress(f"Testing {count} mixed read/write operations...")
        start = self._clock()
        results = []
        for i in range(count):

            async def work(session: AsyncSession, i: int = i) -> int:
                read = await queries.votes_by_position(session, Position.PRESIDENT, 10)
                written = await queries.feedback_round_trip(
                    session, "mixed-test", f"Mixed operation test {i}", f"mixed{i}@test.com"
                )
                return read + written

            results.append(await self._timed("mixed", work))
        return self._finish("mixed", results, start)

    def _finish(self, name: str, results: list[Result], start: float) -> PhaseResult:
        phase = PhaseResult(name=name, results=results, total_time_ms=(self._clock() - start) * 1000.0)
        progress(
            f"  {name}: avg {phase.avg_response_ms:.2f}ms, "
            f"success {phase.success_rate:.2f}%, total {phase.total_time_ms:.2f}ms"
        )
        logger.info("suite_phase_completed", **phase.to_dict())
        return phase

    async def run(
        self, reads: int = 100, writes: int = 20, connections: int = 50, mixed: int = 30
    ) -> SuiteReport:
        progress("Starting comprehensive database stress test...")
        start = self._clock()
        phases = [
            await self.concurrent_reads(reads),
            await self.sequential_writes(writes),
            await self.connection_pool(connections),
            await self.mixed_operations(mixed),
        ]
        report = SuiteReport(phases=phases, total_time_ms=(self._clock() - start) * 1000.0)
        report.recommendations = recommendations(report)
        return report


def recommendations(report: SuiteReport) -> list[str]:
    advice = []
    if report.phase("concurrent_reads").avg_response_ms > READ_LATENCY_WARN_MS:
        advice.append("Read response times are high - consider adding database indexes")
    if report.phase("writes").avg_response_ms > WRITE_LATENCY_WARN_MS:
        advice.append("Write response times are high - consider optimizing queries")
    if report.phase("connection_pool").success_rate < POOL_SUCCESS_WARN_PCT:
        advice.append("Connection pool issues - consider increasing pool size")
    return advice


def print_suite_report(report: SuiteReport) -> None:
    print("\nCOMPREHENSIVE TEST SUMMARY")
    print("=" * 32)
    print(f"Total Test Duration: {report.total_time_ms / 1000.0:.2f}s")
    for phase in report.phases:
        print(f"{phase.name}: {phase.success_rate:.2f}% success rate")
    print("\nPERFORMANCE RECOMMENDATIONS:")
    if not report.recommendations:
        print("  none")
    for line in report.recommendations:
        print(f"  - {line}")


@dataclass
class SmokeReport:
    read_ms: float
    concurrent_ms: float
    write_ms: float
    aggregate_ms: float
    counts: dict[str, int]

    @property
    def concurrent_avg_ms(self) -> float:
        return self.concurrent_ms / SMOKE_CONCURRENT_QUERIES

    def findings(self) -> list[str]:
        notes = []
        if self.read_ms > SMOKE_READ_WARN_MS:
            notes.append("Read operations are slow - consider adding database indexes")
        if self.concurrent_avg_ms > SMOKE_CONCURRENT_WARN_MS:
            notes.append("Concurrent operations are slow - check connection pool settings")
        if self.write_ms > SMOKE_WRITE_WARN_MS:
            notes.append("Write operations are slow - consider optimizing queries")
        return notes


async def run_smoke_check(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Callable[[], float] = time.perf_counter,
) -> SmokeReport:
    """Short sequential probe. Unlike the suite, any failure propagates."""
    counts: dict[str, int] = {}

    async with session_factory() as session:
        t0 = clock()
        counts["presidential_votes"] = await queries.votes_by_position(session, Position.PRESIDENT, 50)
        counts["governor_votes"] = await queries.votes_by_position(session, Position.GOVERNOR, 50)
        counts["active_candidates"] = await queries.active_candidates(session, 20)
        read_ms = (clock() - t0) * 1000.0

    async def one_read() -> int:
        async with session_factory() as s:
            return await queries.votes_by_position(s, Position.PRESIDENT, 10)

    t0 = clock()
    await asyncio.gather(*(one_read() for _ in range(SMOKE_CONCURRENT_QUERIES)))
    concurrent_ms = (clock() - t0) * 1000.0

    async with session_factory() as session:
        t0 = clock()
        await queries.feedback_round_trip(
            session, "performance-test", "Database performance test feedback", "test@performance.com"
        )
        write_ms = (clock() - t0) * 1000.0

        t0 = clock()
        counts["positions_summarised"] = await queries.vote_summary_by_position(session)
        aggregate_ms = (clock() - t0) * 1000.0

    report = SmokeReport(
        read_ms=read_ms,
        concurrent_ms=concurrent_ms,
        write_ms=write_ms,
        aggregate_ms=aggregate_ms,
        counts=counts,
    )
    logger.info(
        "smoke_check_completed",
        read_ms=round(read_ms, 2),
        concurrent_ms=round(concurrent_ms, 2),
        write_ms=round(write_ms, 2),
        aggregate_ms=round(aggregate_ms, 2),
    )
    return report


def print_smoke_report(report: SmokeReport) -> None:
    print("\nPERFORMANCE SUMMARY:")
    print("=" * 24)
    print(f"Read Operations: {report.read_ms:.0f}ms")
    print(
        f"Concurrent Operations: {report.concurrent_ms:.0f}ms "
        f"({report.concurrent_avg_ms:.2f}ms avg)"
    )
    print(f"Write Operations: {report.write_ms:.0f}ms")
    print(f"Complex Queries: {report.aggregate_ms:.0f}ms")
    for name, count in report.counts.items():
        print(f"  - {name}: {count}")
    notes = report.findings()
    print("\nRECOMMENDATIONS:")
    if not notes:
        print("  All probes within thresholds")
    for note in notes:
        print(f"  - {note}")
