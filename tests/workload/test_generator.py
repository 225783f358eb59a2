"""Tests for weighted operation selection and timed execution."""

import random
from collections import Counter

import pytest

from election_load.workload.generator import WorkloadGenerator


class _FixedDraw:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestCatalogValidation:
    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            WorkloadGenerator([])

    def test_zero_weight_rejected(self, make_operation):
        with pytest.raises(ValueError, match="positive integer weight"):
            WorkloadGenerator([make_operation("a", weight=0)])

    def test_duplicate_names_rejected(self, make_operation):
        with pytest.raises(ValueError, match="unique"):
            WorkloadGenerator([make_operation("a"), make_operation("a")])

    def test_total_weight_is_sum(self, make_operation):
        gen = WorkloadGenerator([make_operation("a", 3), make_operation("b", 4)])
        assert gen.total_weight == 7


class TestSelectOperation:
    def test_ninety_ten_split(self, make_operation):
        gen = WorkloadGenerator(
            [make_operation("a", 90), make_operation("b", 10)], rng=random.Random(1234)
        )
        counts = Counter(gen.select_operation().name for _ in range(10_000))
        assert 8900 <= counts["a"] <= 9100
        assert counts["a"] + counts["b"] == 10_000

    def test_frequencies_track_weights(self, make_operation):
        catalog = [make_operation("a", 1), make_operation("b", 2), make_operation("c", 7)]
        gen = WorkloadGenerator(catalog, rng=random.Random(7))
        draws = 20_000
        counts = Counter(gen.select_operation().name for _ in range(draws))
        for op in catalog:
            expected = op.weight / gen.total_weight
            assert counts[op.name] / draws == pytest.approx(expected, abs=0.02)

    def test_weights_need_not_sum_to_hundred(self, make_operation):
        gen = WorkloadGenerator(
            [make_operation("a", 3), make_operation("b", 1)], rng=random.Random(99)
        )
        counts = Counter(gen.select_operation().name for _ in range(8_000))
        assert counts["a"] / 8_000 == pytest.approx(0.75, abs=0.03)

    def test_draw_on_boundary_moves_to_next_operation(self, make_operation):
        catalog = [make_operation("a", 90), make_operation("b", 10)]
        assert WorkloadGenerator(catalog, rng=_FixedDraw(0.0)).select_operation().name == "a"
        assert WorkloadGenerator(catalog, rng=_FixedDraw(0.899)).select_operation().name == "a"
        assert WorkloadGenerator(catalog, rng=_FixedDraw(0.9)).select_operation().name == "b"
        assert WorkloadGenerator(catalog, rng=_FixedDraw(0.9999)).select_operation().name == "b"

    def test_single_operation_always_chosen(self, make_operation):
        gen = WorkloadGenerator([make_operation("only", 5)])
        assert {gen.select_operation().name for _ in range(50)} == {"only"}


class TestExecuteOperation:
    @pytest.mark.asyncio
    async def test_success_is_timed(self, make_operation):
        ticks = iter([10.0, 10.25])
        gen = WorkloadGenerator([make_operation("a", count=7)], clock=lambda: next(ticks))
        result = await gen.execute_operation(gen.catalog[0])

        assert result.success is True
        assert result.operation == "a"
        assert result.item_count == 7
        assert result.duration_ms == pytest.approx(250.0)
        assert result.error_message is None

    @pytest.mark.asyncio
    async def test_failure_becomes_result(self, make_operation):
        gen = WorkloadGenerator([make_operation("boom", fail=True)])
        result = await gen.execute_operation(gen.catalog[0])

        assert result.success is False
        assert "boom exploded" in result.error_message
        assert result.duration_ms >= 0.0
        assert result.item_count is None

    @pytest.mark.asyncio
    async def test_failure_without_message_uses_type_name(self):
        from election_load.workload.models import Operation

        async def execute() -> int:
            raise ConnectionError()

        gen = WorkloadGenerator([Operation(name="conn", weight=1, execute=execute)])
        result = await gen.next_result()
        assert result.error_message == "ConnectionError"
