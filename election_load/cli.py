"""Command-line entry point for the election database load tests.

Usage:
    election-loadtest run
    election-loadtest run --profile million
    election-loadtest run --profile quick --total-operations 2000 --batches 8 --seed 7
    election-loadtest run --config workload.yaml --weight write_feedback=0
    election-loadtest run --profile million --no-monitor
    election-loadtest suite --reads 200 --writes 50
    election-loadtest smoke
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys

import structlog

from election_load.config import settings
from election_load.errors import LoadTestError
from election_load.shared.console import progress
from election_load.shared.logging import setup_logging
from election_load.workload.config import PROFILES, load_profile

logger = structlog.get_logger()


def _parse_weight(value: str) -> tuple[str, int]:
    name, sep, weight = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=WEIGHT, got {value!r}")
    try:
        return name, int(weight)
    except ValueError:
        raise argparse.ArgumentTypeError(f"weight for {name!r} must be an integer") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.app_name,
        description="Load tests for the election results database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {settings.app_version}"
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Weighted random workload in concurrent batches.")
    run.add_argument(
        "--profile",
        choices=list(PROFILES.keys()),
        default=settings.default_profile,
        help=f"Built-in workload profile (default: {settings.default_profile}).",
    )
    run.add_argument("--config", type=str, default=None, help="YAML file of workload overrides.")
    run.add_argument("--total-operations", type=int, default=None)
    run.add_argument("--batches", type=int, default=None, help="Number of concurrent batches.")
    run.add_argument(
        "--batch-delay-ms", type=float, default=None, help="Stagger between batch starts."
    )
    run.add_argument(
        "--pacing-interval", type=int, default=None, help="Pause every N operations per batch."
    )
    run.add_argument("--pacing-pause-ms", type=float, default=None)
    run.add_argument("--seed", type=int, default=settings.random_seed)
    run.add_argument(
        "--weight",
        type=_parse_weight,
        action="append",
        default=[],
        metavar="NAME=WEIGHT",
        help="Override one operation weight; 0 removes the operation.",
    )
    run.add_argument(
        "--output",
        type=str,
        default=settings.report_path,
        help=f"Where to write the JSON report (default: {settings.report_path}).",
    )
    run.add_argument(
        "--no-monitor",
        action="store_true",
        help="Skip sampling process memory, CPU and load average during the run.",
    )

    suite = sub.add_parser("suite", help="Four-phase database stress suite.")
    suite.add_argument("--reads", type=int, default=100)
    suite.add_argument("--writes", type=int, default=20)
    suite.add_argument("--connections", type=int, default=50)
    suite.add_argument("--mixed", type=int, default=30)

    sub.add_parser("smoke", help="Quick sequential performance probe.")
    return parser


async def run_command(args: argparse.Namespace) -> None:
    from election_load.db.database import async_session_factory, ensure_db
    from election_load.operations.catalog import build_catalog
    from election_load.operations.params import ParameterGenerator
    from election_load.workload.generator import WorkloadGenerator
    from election_load.workload.monitor import ResourceMonitor
    from election_load.workload.report import print_summary, write_report
    from election_load.workload.scheduler import BatchScheduler

    config = load_profile(args.profile, args.config).with_overrides(
        total_operations=args.total_operations,
        batch_count=args.batches,
        inter_batch_delay_ms=args.batch_delay_ms,
        pacing_interval=args.pacing_interval,
        pacing_pause_ms=args.pacing_pause_ms,
        seed=args.seed,
    )

    catalog = build_catalog(
        async_session_factory,
        params=ParameterGenerator(seed=config.seed),
        weights=dict(args.weight),
    )
    generator = WorkloadGenerator(catalog, rng=random.Random(config.seed))
    scheduler = BatchScheduler(
        generator,
        pacing_interval=config.pacing_interval,
        pacing_pause_ms=config.pacing_pause_ms,
        progress_interval=config.progress_interval,
        preflight=ensure_db,
        monitor=(
            None
            if args.no_monitor
            else ResourceMonitor(interval_s=settings.monitor_interval_s, display_every=10)
        ),
    )

    progress(
        f"Starting database load test: profile={args.profile}, "
        f"operations={config.total_operations:,}, batches={config.batch_count}"
    )
    report = await scheduler.run_workload(
        config.total_operations,
        config.batch_count,
        config.inter_batch_delay_ms,
        test_configuration={"profile": args.profile, "seed": config.seed},
    )
    print_summary(report)
    path = write_report(report, args.output)
    progress(f"Detailed results saved to: {path}")


async def suite_command(args: argparse.Namespace) -> None:
    from election_load.db.database import async_session_factory, ensure_db
    from election_load.suite import DatabaseStressSuite, print_suite_report

    await ensure_db()
    suite = DatabaseStressSuite(async_session_factory)
    report = await suite.run(
        reads=args.reads, writes=args.writes, connections=args.connections, mixed=args.mixed
    )
    print_suite_report(report)


async def smoke_command(args: argparse.Namespace) -> None:
    from election_load.db.database import async_session_factory, ensure_db
    from election_load.suite import print_smoke_report, run_smoke_check

    await ensure_db()
    report = await run_smoke_check(async_session_factory)
    print_smoke_report(report)


COMMANDS = {
    "run": run_command,
    "suite": suite_command,
    "smoke": smoke_command,
}


async def async_main(args: argparse.Namespace) -> int:
    from election_load.db.database import dispose_db

    try:
        await COMMANDS[args.command](args)
    except LoadTestError as exc:
        logger.error("run_failed", command=args.command, error=str(exc))
        return 1
    except Exception:
        logger.exception("run_failed", command=args.command)
        return 1
    finally:
        await dispose_db()
    progress(f"{args.command} completed successfully")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        # No flags at all runs the default workload
        args = parser.parse_args(["run"])

    setup_logging(settings.log_level, json_logs=settings.json_logs)
    return asyncio.run(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
