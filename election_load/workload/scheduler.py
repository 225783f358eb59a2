"""Batch scheduler: partitions a workload, staggers batches and folds results.

A run moves through ``IDLE -> SCHEDULING -> RUNNING -> AGGREGATING ->
REPORTED`` exactly once. Batches run concurrently as asyncio tasks; the
operations inside one batch run strictly one after another, modelling
independent client sessions that each issue serial requests.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from election_load.shared.console import progress
from election_load.workload.generator import WorkloadGenerator
from election_load.workload.metrics import AggregateMetrics
from election_load.workload.models import Batch, RunState
from election_load.workload.monitor import ResourceMonitor, ResourceSummary
from election_load.workload.report import Report, build_report, summarize_batch

logger = structlog.get_logger()

Preflight = Callable[[], Awaitable[None]]
Sleep = Callable[[float], Awaitable[Any]]


def partition_operations(total_operations: int, batch_count: int) -> list[int]:
    """Split ``total_operations`` into near-equal batch sizes.

    Sizes differ by at most one and always add up to ``total_operations``.
    Fewer than ``batch_count`` batches are returned when there are not enough
    operations to give every batch at least one.
    """
    if total_operations < 0:
        raise ValueError(f"total_operations must be >= 0, got {total_operations}")
    if batch_count < 1:
        raise ValueError(f"batch_count must be >= 1, got {batch_count}")

    batches = min(batch_count, total_operations)
    if batches == 0:
        return []
    base, remainder = divmod(total_operations, batches)
    return [base + 1 if i < remainder else base for i in range(batches)]


def create_batches(
    total_operations: int, batch_count: int, inter_batch_delay_ms: float
) -> list[Batch]:
    sizes = partition_operations(total_operations, batch_count)
    return [
        Batch(id=i + 1, size=size, start_delay_ms=i * inter_batch_delay_ms)
        for i, size in enumerate(sizes)
    ]


class BatchScheduler:
    """Drives one batched run of a :class:`WorkloadGenerator` and reports on it."""

    def __init__(
        self,
        generator: WorkloadGenerator,
        metrics: AggregateMetrics | None = None,
        *,
        pacing_interval: int = 1000,
        pacing_pause_ms: float = 10.0,
        progress_interval: int = 0,
        preflight: Preflight | None = None,
        monitor: ResourceMonitor | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.generator = generator
        self.metrics = metrics or AggregateMetrics()
        self.pacing_interval = pacing_interval
        self.pacing_pause_ms = pacing_pause_ms
        self.progress_interval = progress_interval
        self._preflight = preflight
        self.monitor = monitor
        self._sleep = sleep
        self._clock = clock
        self._state = RunState.IDLE
        self._batch_total = 0

    @property
    def state(self) -> RunState:
        return self._state

    async def run_workload(
        self,
        total_operations: int,
        batch_count: int,
        inter_batch_delay_ms: float = 0.0,
        test_configuration: dict[str, Any] | None = None,
    ) -> Report:
        """Run the whole workload and return the final report.

        A failing preflight check propagates and no report is produced.
        Individual operation failures only show up in the report.
        """
        if self._state is not RunState.IDLE:
            raise RuntimeError(f"scheduler already used (state={self._state})")
        if inter_batch_delay_ms < 0:
            raise ValueError("inter_batch_delay_ms must be >= 0")

        self._state = RunState.SCHEDULING
        if self._preflight is not None:
            await self._preflight()

        batches = create_batches(total_operations, batch_count, inter_batch_delay_ms)
        self._batch_total = len(batches)
        logger.info(
            "workload_scheduled",
            total_operations=total_operations,
            batches=len(batches),
            inter_batch_delay_ms=inter_batch_delay_ms,
        )

        self._state = RunState.RUNNING
        start = self._clock()
        if self.monitor is not None:
            self.monitor.start()
        resources: ResourceSummary | None = None
        try:
            tasks = [asyncio.create_task(self._run_batch(batch)) for batch in batches]
            await asyncio.gather(*tasks)
        finally:
            wall_clock_s = self._clock() - start
            if self.monitor is not None:
                resources = await self.monitor.stop()
        self._state = RunState.AGGREGATING

        config = {
            "total_operations": total_operations,
            "batch_count": batch_count,
            "inter_batch_delay_ms": inter_batch_delay_ms,
            "pacing_interval": self.pacing_interval,
            "pacing_pause_ms": self.pacing_pause_ms,
            "operation_weights": {op.name: op.weight for op in self.generator.catalog},
        }
        config.update(test_configuration or {})

        report = build_report(
            self.metrics.snapshot(),
            wall_clock_s,
            batch_summaries=[summarize_batch(b) for b in batches],
            test_configuration=config,
            resources=resources,
        )
        self._state = RunState.REPORTED
        logger.info(
            "workload_completed",
            completed=report.total_operations,
            failed=report.failed_operations,
            duration_s=report.total_duration_s,
            score=report.performance_score,
        )
        return report

    async def _run_batch(self, batch: Batch) -> Batch:
        if batch.start_delay_ms > 0:
            await self._sleep(batch.start_delay_ms / 1000.0)

        progress(
            f"Processing batch {batch.id}/{self._batch_total} ({batch.size} operations)"
        )
        batch.started_at = self._clock()
        try:
            for i in range(1, batch.size + 1):
                result = await self.generator.next_result()
                self.metrics.record(result)
                batch.results.append(result)

                if self.progress_interval and i % self.progress_interval == 0:
                    progress(f"  batch {batch.id}: {i}/{batch.size} operations")
                if self.pacing_interval and i % self.pacing_interval == 0:
                    await self._sleep(self.pacing_pause_ms / 1000.0)
        finally:
            batch.finished_at = self._clock()

        elapsed_s = batch.duration_ms / 1000.0
        rate = len(batch.results) / elapsed_s if elapsed_s > 0 else 0.0
        progress(
            f"Batch {batch.id} completed: {len(batch.results)} operations in "
            f"{elapsed_s:.2f}s ({rate:.0f} ops/sec)"
        )
        return batch
