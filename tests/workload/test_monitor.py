"""Tests for process resource sampling during a run."""

import asyncio
import itertools

import pytest

from election_load.workload.generator import WorkloadGenerator
from election_load.workload.monitor import (
    MB,
    ProcessSampler,
    ResourceMonitor,
    ResourceSample,
    memory_trend,
    summarize_samples,
)
from election_load.workload.report import print_summary
from election_load.workload.scheduler import BatchScheduler


def _sample(rss_mb: float, cpu: float = 10.0, load: float = 0.5) -> ResourceSample:
    return ResourceSample(
        timestamp=0.0, rss_bytes=int(rss_mb * MB), cpu_percent=cpu, load_average=(load, load, load)
    )


def _counting_sampler(start_mb: float = 100.0, step_mb: float = 1.0):
    counter = itertools.count()

    def sampler() -> ResourceSample:
        return _sample(start_mb + next(counter) * step_mb)

    return sampler


def _sleep_then_block(free_calls: int):
    """Sleep stand-in: the first ``free_calls`` calls return at once, later ones never do."""
    calls = itertools.count()
    never = asyncio.Event()

    async def sleep(seconds: float) -> None:
        if next(calls) < free_calls:
            await asyncio.sleep(0)
        else:
            await never.wait()

    return sleep


async def _yield_to_loop(times: int = 10) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


class TestMemoryTrend:
    def test_too_few_samples_is_stable(self):
        assert memory_trend([]) == "stable"
        assert memory_trend([_sample(100)]) == "stable"

    @pytest.mark.parametrize(
        "first,last,expected",
        [
            (100, 111, "increasing"),
            (100, 89, "decreasing"),
            (100, 110, "stable"),
            (100, 95, "stable"),
        ],
    )
    def test_growth_thresholds(self, first, last, expected):
        assert memory_trend([_sample(first), _sample(last)]) == expected

    def test_only_recent_window_counts(self):
        samples = [_sample(50)] + [_sample(100)] * 10
        assert memory_trend(samples) == "stable"


class TestSummarizeSamples:
    def test_peaks_and_averages(self):
        samples = [
            _sample(100, cpu=20, load=1.0),
            _sample(180, cpu=60, load=3.5),
            _sample(150, cpu=40),
        ]
        summary = summarize_samples(samples, cpu_count=4)

        assert summary.samples == 3
        assert summary.start_rss_mb == 100.0
        assert summary.final_rss_mb == 150.0
        assert summary.peak_rss_mb == 180.0
        assert summary.avg_cpu_percent == 40.0
        assert summary.peak_cpu_percent == 60.0
        assert summary.peak_load_1m == 3.5
        assert summary.memory_trend == "increasing"

    def test_findings(self):
        busy = summarize_samples([_sample(100, load=6.0), _sample(130, load=6.0)], cpu_count=4)
        assert len(busy.findings()) == 2
        calm = summarize_samples([_sample(100), _sample(101)], cpu_count=4)
        assert calm.findings() == []

    def test_no_samples(self):
        with pytest.raises(ValueError):
            summarize_samples([])


class TestResourceMonitor:
    @pytest.mark.asyncio
    async def test_samples_at_start_and_stop(self):
        monitor = ResourceMonitor(_counting_sampler(), sleep=_sleep_then_block(0))

        monitor.start()
        assert monitor.running
        await _yield_to_loop()
        summary = await monitor.stop()

        assert not monitor.running
        assert summary.samples == 2
        assert summary.start_rss_mb == 100.0
        assert summary.final_rss_mb == 101.0

    @pytest.mark.asyncio
    async def test_samples_every_interval(self):
        monitor = ResourceMonitor(_counting_sampler(), sleep=_sleep_then_block(3))

        monitor.start()
        await _yield_to_loop()
        summary = await monitor.stop()

        assert summary.samples == 5
        assert summary.peak_rss_mb == 104.0

    @pytest.mark.asyncio
    async def test_periodic_display(self, capsys):
        monitor = ResourceMonitor(
            _counting_sampler(), display_every=2, sleep=_sleep_then_block(3)
        )

        monitor.start()
        await _yield_to_loop()
        await monitor.stop()

        assert capsys.readouterr().out.count("Resources: rss") == 2

    @pytest.mark.asyncio
    async def test_start_and_stop_guard(self):
        monitor = ResourceMonitor(_counting_sampler(), sleep=_sleep_then_block(0))
        with pytest.raises(RuntimeError):
            await monitor.stop()
        monitor.start()
        with pytest.raises(RuntimeError):
            monitor.start()
        await monitor.stop()

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            ResourceMonitor(_counting_sampler(), interval_s=0)


class TestProcessSampler:
    def test_reads_current_process(self):
        sample = ProcessSampler()()
        assert sample.rss_bytes > 0
        assert sample.cpu_percent >= 0.0
        assert len(sample.load_average) == 3


class TestSchedulerMonitoring:
    @pytest.mark.asyncio
    async def test_report_carries_resource_summary(self, make_operation, capsys):
        monitor = ResourceMonitor(_counting_sampler(step_mb=20.0), sleep=_sleep_then_block(0))
        gen = WorkloadGenerator([make_operation("a")])
        scheduler = BatchScheduler(gen, pacing_interval=0, monitor=monitor)

        report = await scheduler.run_workload(20, 2)

        assert not monitor.running
        assert report.resources is not None
        assert report.resources.samples == 2
        assert report.resources.peak_rss_mb == 120.0
        assert report.resources.memory_trend == "increasing"
        assert report.model_dump()["resources"]["memory_trend"] == "increasing"

        print_summary(report)
        out = capsys.readouterr().out
        assert "Peak memory (RSS):     120.00MB (trend: increasing)" in out
        assert "check for leaks" in out

    @pytest.mark.asyncio
    async def test_no_monitor_means_no_resources(self, make_operation):
        gen = WorkloadGenerator([make_operation("a")])
        report = await BatchScheduler(gen, pacing_interval=0).run_workload(5, 1)
        assert report.resources is None
