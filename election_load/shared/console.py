"""Timestamped progress lines for the human watching a run."""

from datetime import UTC, datetime


def progress(msg: str) -> None:
    ts = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)
