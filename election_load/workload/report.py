"""Report construction, performance scoring and persistence."""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import numpy as np
import structlog
from pydantic import BaseModel, Field

from election_load.errors import ReportWriteError
from election_load.workload.metrics import MetricsSnapshot
from election_load.workload.models import Batch
from election_load.workload.monitor import ResourceSummary

logger = structlog.get_logger()

# (threshold, points); first matching band wins
SUCCESS_RATE_BANDS: tuple[tuple[float, float], ...] = ((99, 4), (95, 3), (90, 2), (80, 1))
LATENCY_BANDS_MS: tuple[tuple[float, float], ...] = (
    (50, 3),
    (100, 2.5),
    (200, 2),
    (500, 1.5),
    (1000, 1),
)
THROUGHPUT_BANDS: tuple[tuple[float, float], ...] = (
    (2000, 3),
    (1500, 2.5),
    (1000, 2),
    (500, 1.5),
    (100, 1),
)
MAX_SCORE = 10.0


class BatchSummary(BaseModel):
    batch_id: int
    size: int
    completed: int
    failed: int
    duration_ms: float = Field(ge=0)
    ops_per_second: float = Field(ge=0)
    p50_ms: float = 0.0
    p95_ms: float = 0.0


class OperationBreakdown(BaseModel):
    count: int
    failed: int
    share_pct: float = Field(ge=0, le=100)


class Report(BaseModel):
    model_config = {"frozen": True}

    test_configuration: dict[str, Any]
    total_operations: int
    successful_operations: int
    failed_operations: int
    success_rate: float = Field(ge=0, le=100)
    total_duration_s: float = Field(ge=0)
    average_response_ms: float = Field(ge=0)
    min_response_ms: float = Field(ge=0)
    max_response_ms: float = Field(ge=0)
    operations_per_second: float = Field(ge=0)
    batch_count: int
    performance_score: float = Field(ge=0, le=10)
    operations: dict[str, OperationBreakdown] = Field(default_factory=dict)
    batches: list[BatchSummary] = Field(default_factory=list)
    resources: ResourceSummary | None = None
    generated_at: datetime


def performance_score(success_rate: float, avg_duration_ms: float, ops_per_second: float) -> float:
    """Weighted banded score: success rate 4, latency 3, throughput 3, capped at 10."""
    score = 0.0
    for threshold, points in SUCCESS_RATE_BANDS:
        if success_rate >= threshold:
            score += points
            break
    for threshold, points in LATENCY_BANDS_MS:
        if avg_duration_ms <= threshold:
            score += points
            break
    for threshold, points in THROUGHPUT_BANDS:
        if ops_per_second >= threshold:
            score += points
            break
    return min(MAX_SCORE, score)


def summarize_batch(batch: Batch) -> BatchSummary:
    durations = [r.duration_ms for r in batch.results]
    failed = sum(1 for r in batch.results if not r.success)
    elapsed_ms = batch.duration_ms
    if durations:
        arr = np.array(durations)
        p50 = float(np.percentile(arr, 50))
        p95 = float(np.percentile(arr, 95))
    else:
        p50 = p95 = 0.0
    return BatchSummary(
        batch_id=batch.id,
        size=batch.size,
        completed=len(durations),
        failed=failed,
        duration_ms=round(elapsed_ms, 2),
        ops_per_second=round(len(durations) / (elapsed_ms / 1000.0), 2) if elapsed_ms > 0 else 0.0,
        p50_ms=round(p50, 2),
        p95_ms=round(p95, 2),
    )


def build_report(
    snapshot: MetricsSnapshot,
    wall_clock_s: float,
    batch_summaries: list[BatchSummary] | None = None,
    test_configuration: dict[str, Any] | None = None,
    resources: ResourceSummary | None = None,
) -> Report:
    completed = snapshot.completed_count
    if completed > 0:
        success_rate = snapshot.succeeded_count / completed * 100.0
        avg_ms = snapshot.total_duration_ms / completed
    else:
        success_rate = 0.0
        avg_ms = 0.0
    ops_per_second = completed / wall_clock_s if wall_clock_s > 0 else 0.0

    operations = {
        name: OperationBreakdown(
            count=count,
            failed=failures,
            share_pct=round(count / completed * 100.0, 2) if completed else 0.0,
        )
        for name, (count, failures) in sorted(snapshot.by_operation.items())
    }

    return Report(
        test_configuration=test_configuration or {},
        total_operations=completed,
        successful_operations=snapshot.succeeded_count,
        failed_operations=snapshot.failed_count,
        success_rate=round(success_rate, 2),
        total_duration_s=round(max(wall_clock_s, 0.0), 3),
        average_response_ms=round(avg_ms, 2),
        min_response_ms=round(snapshot.min_duration_ms, 2),
        max_response_ms=round(snapshot.max_duration_ms, 2),
        operations_per_second=round(ops_per_second, 2),
        batch_count=len(batch_summaries or []),
        performance_score=(
            performance_score(success_rate, avg_ms, ops_per_second) if completed else 0.0
        ),
        operations=operations,
        batches=batch_summaries or [],
        resources=resources,
        generated_at=datetime.now(UTC),
    )


def write_report(report: Report, path: str | Path) -> Path:
    """Write the report as indented JSON; any filesystem error aborts the run."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(report.model_dump_json(indent=2))
    except OSError as exc:
        raise ReportWriteError(f"could not write report to {target}: {exc}") from exc
    logger.info("report_written", path=str(target))
    return target


def print_summary(report: Report, file=None) -> None:
    file = file or sys.stdout
    line = "=" * 72
    print(f"\n{line}", file=file)
    print("  DATABASE LOAD TEST RESULTS", file=file)
    print(line, file=file)
    print(f"  Total operations:      {report.total_operations:,}", file=file)
    print(f"  Success rate:          {report.success_rate:.2f}%", file=file)
    print(f"  Average response time: {report.average_response_ms:.2f}ms", file=file)
    print(
        f"  Min / max response:    {report.min_response_ms:.2f}ms / "
        f"{report.max_response_ms:.2f}ms",
        file=file,
    )
    print(f"  Operations/second:     {report.operations_per_second:.0f}", file=file)
    print(f"  Total duration:        {report.total_duration_s:.2f}s", file=file)
    print(f"  Performance score:     {report.performance_score}/10", file=file)

    if report.operations:
        print(f"\n  {'Operation':<20} {'Count':>10} {'Failed':>8} {'Share':>8}", file=file)
        print(f"  {'-'*20} {'-'*10} {'-'*8} {'-'*8}", file=file)
        for name, op in report.operations.items():
            print(
                f"  {name:<20} {op.count:>10} {op.failed:>8} {op.share_pct:>7.2f}%",
                file=file,
            )
    if report.resources is not None:
        res = report.resources
        print(
            f"\n  Peak memory (RSS):     {res.peak_rss_mb:.2f}MB (trend: {res.memory_trend})",
            file=file,
        )
        print(
            f"  CPU avg / peak:        {res.avg_cpu_percent:.1f}% / {res.peak_cpu_percent:.1f}%",
            file=file,
        )
        print(
            f"  Peak load (1m):        {res.peak_load_1m:.2f} on {res.cpu_count} CPUs", file=file
        )
        for note in res.findings():
            print(f"  ! {note}", file=file)
    print(f"{line}\n", file=file)
