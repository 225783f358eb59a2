"""Process resource sampling while a workload runs.

A :class:`ResourceMonitor` samples resident memory, process CPU and the host
load average on a fixed interval from a background task, then folds the
samples into a :class:`ResourceSummary` for the report.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import psutil
import structlog
from pydantic import BaseModel

from election_load.shared.console import progress

logger = structlog.get_logger()

MB = 1024 * 1024
TREND_WINDOW = 10
TREND_THRESHOLD_PCT = 10.0


@dataclass(frozen=True)
class ResourceSample:
    timestamp: float
    rss_bytes: int
    cpu_percent: float
    load_average: tuple[float, float, float]


class ProcessSampler:
    """Reads one :class:`ResourceSample` for a process via psutil."""

    def __init__(self, pid: int | None = None):
        self._process = psutil.Process(pid or os.getpid())
        # The first cpu_percent call only sets the baseline and returns 0.0
        self._process.cpu_percent(interval=None)

    def __call__(self) -> ResourceSample:
        with self._process.oneshot():
            rss = self._process.memory_info().rss
            cpu = self._process.cpu_percent(interval=None)
        if hasattr(psutil, "getloadavg"):
            load = tuple(psutil.getloadavg())
        else:
            load = (0.0, 0.0, 0.0)
        return ResourceSample(
            timestamp=time.time(), rss_bytes=rss, cpu_percent=cpu, load_average=load
        )


class ResourceSummary(BaseModel):
    model_config = {"frozen": True}

    samples: int
    start_rss_mb: float
    final_rss_mb: float
    peak_rss_mb: float
    avg_cpu_percent: float
    peak_cpu_percent: float
    peak_load_1m: float
    cpu_count: int
    memory_trend: str

    def findings(self) -> list[str]:
        notes = []
        if self.memory_trend == "increasing":
            notes.append("Memory usage is increasing - check for leaks in the load generator")
        if self.peak_load_1m > self.cpu_count:
            notes.append("High system load - the generator host may be the bottleneck")
        return notes


def memory_trend(samples: list[ResourceSample], window: int = TREND_WINDOW) -> str:
    """Compare RSS at both ends of the last ``window`` samples.

    More than 10% growth is ``increasing``, more than 10% shrinkage is
    ``decreasing``, anything else (including fewer than two samples) ``stable``.
    """
    recent = samples[-window:]
    if len(recent) < 2 or recent[0].rss_bytes <= 0:
        return "stable"
    growth = (recent[-1].rss_bytes - recent[0].rss_bytes) / recent[0].rss_bytes * 100.0
    if growth > TREND_THRESHOLD_PCT:
        return "increasing"
    if growth < -TREND_THRESHOLD_PCT:
        return "decreasing"
    return "stable"


def summarize_samples(
    samples: list[ResourceSample], cpu_count: int | None = None
) -> ResourceSummary:
    if not samples:
        raise ValueError("no resource samples to summarize")
    rss = [s.rss_bytes for s in samples]
    cpu = [s.cpu_percent for s in samples]
    return ResourceSummary(
        samples=len(samples),
        start_rss_mb=round(rss[0] / MB, 2),
        final_rss_mb=round(rss[-1] / MB, 2),
        peak_rss_mb=round(max(rss) / MB, 2),
        avg_cpu_percent=round(sum(cpu) / len(cpu), 2),
        peak_cpu_percent=round(max(cpu), 2),
        peak_load_1m=round(max(s.load_average[0] for s in samples), 2),
        cpu_count=cpu_count or psutil.cpu_count() or 1,
        memory_trend=memory_trend(samples),
    )


class ResourceMonitor:
    """Samples on ``interval_s`` from :meth:`start` until :meth:`stop`.

    One sample is always taken at start and one at stop, so even a run
    shorter than the interval has a start and an end point.
    """

    def __init__(
        self,
        sampler: Callable[[], ResourceSample] | None = None,
        interval_s: float = 1.0,
        display_every: int = 0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._sampler = sampler or ProcessSampler()
        self.interval_s = interval_s
        self.display_every = display_every
        self._sleep = sleep
        self._samples: list[ResourceSample] = []
        self._task: asyncio.Task | None = None

    @property
    def samples(self) -> list[ResourceSample]:
        return list(self._samples)

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("resource monitor already running")
        self._samples.clear()
        self._take()
        self._task = asyncio.create_task(self._run())
        logger.debug("resource_monitor_started", interval_s=self.interval_s)

    async def stop(self) -> ResourceSummary:
        if self._task is None:
            raise RuntimeError("resource monitor is not running")
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        self._take()

        summary = summarize_samples(self._samples)
        logger.info(
            "resource_monitor_stopped",
            samples=summary.samples,
            peak_rss_mb=summary.peak_rss_mb,
            memory_trend=summary.memory_trend,
        )
        return summary

    def _take(self) -> ResourceSample:
        sample = self._sampler()
        self._samples.append(sample)
        return sample

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval_s)
            sample = self._take()
            if self.display_every and len(self._samples) % self.display_every == 0:
                progress(
                    f"Resources: rss {sample.rss_bytes / MB:.1f}MB | "
                    f"cpu {sample.cpu_percent:.1f}% | load {sample.load_average[0]:.2f}"
                )
