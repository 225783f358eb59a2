"""Weighted-random operation selection and timed execution."""

from __future__ import annotations

import bisect
import itertools
import random
import time
from collections.abc import Callable, Sequence

import structlog

from election_load.workload.models import Operation, Result

logger = structlog.get_logger()


class WorkloadGenerator:
    """Picks operations from a fixed catalog and turns each execution into a Result.

    Selection draws ``r`` uniformly from ``[0, total_weight)`` and returns the
    first operation whose cumulative weight exceeds ``r``. Weights are
    proportional; they do not have to add up to 100.
    """

    def __init__(
        self,
        catalog: Sequence[Operation],
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if not catalog:
            raise ValueError("operation catalog must not be empty")
        names = [op.name for op in catalog]
        if len(set(names)) != len(names):
            raise ValueError(f"operation names must be unique, got {names}")
        for op in catalog:
            if not isinstance(op.weight, int) or op.weight <= 0:
                raise ValueError(f"operation {op.name!r} needs a positive integer weight")

        self._catalog: tuple[Operation, ...] = tuple(catalog)
        self._cumulative: list[int] = list(itertools.accumulate(op.weight for op in catalog))
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def catalog(self) -> tuple[Operation, ...]:
        return self._catalog

    @property
    def total_weight(self) -> int:
        return self._cumulative[-1]

    def select_operation(self) -> Operation:
        draw = self._rng.random() * self.total_weight
        return self._catalog[bisect.bisect_right(self._cumulative, draw)]

    async def execute_operation(self, op: Operation) -> Result:
        """Run ``op`` once. Store failures are captured, never raised."""
        t0 = self._clock()
        try:
            count = await op.execute()
        except Exception as exc:
            elapsed_ms = (self._clock() - t0) * 1000.0
            logger.debug("operation_failed", operation=op.name, error=str(exc))
            return Result.failed(op.name, elapsed_ms, str(exc) or type(exc).__name__)
        elapsed_ms = (self._clock() - t0) * 1000.0
        return Result.succeeded(op.name, elapsed_ms, count)

    async def next_result(self) -> Result:
        return await self.execute_operation(self.select_operation())
