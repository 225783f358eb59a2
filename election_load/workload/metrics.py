"""Process-wide accumulator shared by every concurrently running batch."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field

from election_load.workload.models import Result


@dataclass(frozen=True)
class MetricsSnapshot:
    completed_count: int
    failed_count: int
    total_duration_ms: float
    min_duration_ms: float
    max_duration_ms: float
    by_operation: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def succeeded_count(self) -> int:
        return self.completed_count - self.failed_count


class AggregateMetrics:
    """Lock-guarded counters; ``record`` updates all of them as one step."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed = 0
        self._failed = 0
        self._total_duration_ms = 0.0
        self._min_duration_ms = math.inf
        self._max_duration_ms = 0.0
        # operation name -> [count, failures]
        self._by_operation: dict[str, list[int]] = {}

    def record(self, result: Result) -> None:
        with self._lock:
            self._completed += 1
            if not result.success:
                self._failed += 1
            self._total_duration_ms += result.duration_ms
            self._min_duration_ms = min(self._min_duration_ms, result.duration_ms)
            self._max_duration_ms = max(self._max_duration_ms, result.duration_ms)
            counts = self._by_operation.setdefault(result.operation, [0, 0])
            counts[0] += 1
            if not result.success:
                counts[1] += 1

    @property
    def completed_count(self) -> int:
        with self._lock:
            return self._completed

    @property
    def failed_count(self) -> int:
        with self._lock:
            return self._failed

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                completed_count=self._completed,
                failed_count=self._failed,
                total_duration_ms=self._total_duration_ms,
                min_duration_ms=0.0 if self._completed == 0 else self._min_duration_ms,
                max_duration_ms=self._max_duration_ms,
                by_operation={k: (v[0], v[1]) for k, v in self._by_operation.items()},
            )
