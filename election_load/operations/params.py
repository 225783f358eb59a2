"""Seeded random filter values for the load operations."""

import random
import time

from election_load.db.models import Position, RegionType

COUNTY_COUNT = 47

QUERYABLE_REGION_TYPES = (RegionType.COUNTY, RegionType.CONSTITUENCY, RegionType.WARD)

FEEDBACK_TYPES = ("bug_report", "feature_request", "data_correction", "general")


class ParameterGenerator:
    """Draws filter values from the fixed domains the seeded database covers."""

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)
        self._counter = 0

    def position(self) -> Position:
        return self._rng.choice(list(Position))

    def county_code(self) -> str:
        """County codes are zero-padded ``001`` .. ``047``."""
        return f"{self._rng.randint(1, COUNTY_COUNT):03d}"

    def region_type(self) -> RegionType:
        return self._rng.choice(QUERYABLE_REGION_TYPES)

    def feedback_type(self) -> str:
        return self._rng.choice(FEEDBACK_TYPES)

    def feedback_message(self) -> tuple[str, str]:
        """Return ``(message, email)`` unique within this process."""
        self._counter += 1
        stamp = f"{time.time_ns()}-{self._counter}"
        return f"Stress test feedback - {stamp}", f"test-{stamp}@example.com"
