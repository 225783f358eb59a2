"""Workload tunables and the built-in run profiles."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class WorkloadConfig:
    """All tunables for a single batched run."""

    total_operations: int = 10_000
    batch_count: int = 10
    inter_batch_delay_ms: float = 200.0
    # Cooperative throttle inside each batch
    pacing_interval: int = 1000
    pacing_pause_ms: float = 10.0
    # Progress line every N completed operations per batch (0 = off)
    progress_interval: int = 0
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.total_operations < 0:
            raise ValueError(f"total_operations must be >= 0, got {self.total_operations}")
        if self.batch_count < 1:
            raise ValueError(f"batch_count must be >= 1, got {self.batch_count}")
        if self.inter_batch_delay_ms < 0:
            raise ValueError("inter_batch_delay_ms must be >= 0")
        if self.pacing_interval < 0 or self.pacing_pause_ms < 0:
            raise ValueError("pacing_interval and pacing_pause_ms must be >= 0")
        if self.progress_interval < 0:
            raise ValueError("progress_interval must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> WorkloadConfig:
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"unknown workload settings: {sorted(unknown)}")
        values = self.to_dict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return WorkloadConfig(**values)


def _profile_million() -> WorkloadConfig:
    """1,000,000 operations across 50 batches launched one second apart."""
    return WorkloadConfig(
        total_operations=1_000_000,
        batch_count=50,
        inter_batch_delay_ms=1000.0,
        progress_interval=5000,
    )


def _profile_standard() -> WorkloadConfig:
    return WorkloadConfig(total_operations=10_000, batch_count=10, inter_batch_delay_ms=200.0)


def _profile_quick() -> WorkloadConfig:
    return WorkloadConfig(
        total_operations=500,
        batch_count=4,
        inter_batch_delay_ms=0.0,
        pacing_interval=0,
    )


PROFILES: dict[str, Callable[[], WorkloadConfig]] = {
    "million": _profile_million,
    "standard": _profile_standard,
    "quick": _profile_quick,
}


def load_profile(name: str, config_file: str | Path | None = None) -> WorkloadConfig:
    """Build the named profile, then apply overrides from a YAML mapping if given."""
    try:
        config = PROFILES[name]()
    except KeyError:
        raise ValueError(f"unknown profile {name!r}; choose from {sorted(PROFILES)}") from None

    if config_file is None:
        return config

    with open(config_file) as f:
        overrides = yaml.safe_load(f) or {}
    if not isinstance(overrides, dict):
        raise ValueError(f"{config_file} must contain a mapping of workload settings")
    return config.with_overrides(**overrides)
