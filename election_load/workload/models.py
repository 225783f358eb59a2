"""Value types shared by the workload generator, scheduler and report."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

# An operation's execute returns how many records it touched.
Execute = Callable[[], Awaitable[int]]


class RunState(StrEnum):
    IDLE = "idle"
    SCHEDULING = "scheduling"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    REPORTED = "reported"


@dataclass(frozen=True)
class Operation:
    """A named unit of work against the store, selected with relative ``weight``."""

    name: str
    weight: int
    execute: Execute = field(repr=False, compare=False)


@dataclass(frozen=True)
class Result:
    """Outcome of one operation execution.

    Build with :meth:`succeeded` or :meth:`failed`; ``error_message`` is only
    ever set on failures.
    """

    operation: str
    success: bool
    duration_ms: float
    item_count: int | None = None
    error_message: str | None = None

    @classmethod
    def succeeded(cls, operation: str, duration_ms: float, item_count: int | None = None) -> Result:
        return cls(
            operation=operation,
            success=True,
            duration_ms=max(0.0, duration_ms),
            item_count=item_count,
        )

    @classmethod
    def failed(cls, operation: str, duration_ms: float, error_message: str) -> Result:
        return cls(
            operation=operation,
            success=False,
            duration_ms=max(0.0, duration_ms),
            error_message=error_message,
        )


@dataclass
class Batch:
    """A contiguous slice of the workload, run sequentially by one task."""

    id: int
    size: int
    start_delay_ms: float = 0.0
    results: list[Result] = field(default_factory=list)
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at) * 1000.0
