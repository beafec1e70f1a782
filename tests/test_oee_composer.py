"""Tests for performance, quality and OEE composition and rounding."""

import pytest

from oee_dashboard.services.oee_composer import (
    RejectedProductionProvider, calculate_performance, calculate_quality,
    compose_oee, round_length, round_percentage
)


class TestComponents:

    def test_performance_undefined_target_is_zero(self):
        assert calculate_performance(5.0, 0.0) == 0.0

    def test_performance_ratio(self):
        assert calculate_performance(1.0, 4.0) == pytest.approx(25.0)

    def test_quality_without_output_is_full(self):
        assert calculate_quality(0.0, rejected_weight=3.0) == 100.0

    def test_quality_with_rejects(self):
        assert calculate_quality(3.0, rejected_weight=1.0) == pytest.approx(75.0)

    @pytest.mark.asyncio
    async def test_default_rejected_production_is_zero(self):
        assert await RejectedProductionProvider().rejected_weight("DEV-1", None, None) == 0.0


class TestComposeOEE:

    def test_typical_window(self):
        metrics = compose_oee(availability=80.0, actual_weight=0.5, target_weight=1.0)
        assert (metrics.oee, metrics.availability, metrics.performance, metrics.quality) == (40.0, 80.0, 50.0, 100.0)

    def test_zero_availability_zeroes_oee(self):
        metrics = compose_oee(availability=0.0, actual_weight=1.0, target_weight=1.0)
        assert metrics.oee == 0.0
        assert metrics.performance == 100.0

    def test_zero_target_zeroes_performance_and_oee(self):
        metrics = compose_oee(availability=90.0, actual_weight=1.0, target_weight=0.0)
        assert (metrics.oee, metrics.performance, metrics.quality) == (0.0, 0.0, 100.0)

    def test_rejected_weight_lowers_quality_and_oee(self):
        metrics = compose_oee(availability=100.0, actual_weight=3.0, target_weight=3.0, rejected_weight=1.0)
        assert metrics.quality == 75.0
        assert metrics.oee == 75.0

    def test_not_clamped_by_default(self):
        metrics = compose_oee(availability=100.0, actual_weight=2.0, target_weight=1.0, clamp=False)
        assert metrics.performance == 200.0
        assert metrics.oee == 200.0

    def test_clamped_on_request(self):
        metrics = compose_oee(availability=100.0, actual_weight=2.0, target_weight=1.0, clamp=True)
        assert metrics.performance == 100.0
        assert metrics.oee == 100.0

    def test_all_figures_rounded_to_two_places(self):
        metrics = compose_oee(availability=100 / 3, actual_weight=2.0, target_weight=3.0)
        assert metrics.availability == 33.33
        assert metrics.performance == 66.67
        assert metrics.oee == 22.22

    def test_huge_ratios_round_without_error(self):
        metrics = compose_oee(availability=50.0, actual_weight=1e10, target_weight=1e-20)
        assert metrics.performance == pytest.approx(1e32)
        assert metrics.oee == pytest.approx(5e31)

    def test_serialized_with_dashboard_names(self):
        metrics = compose_oee(availability=50.0, actual_weight=1.0, target_weight=1.0)
        assert metrics.model_dump(by_alias=True) == {
            "OEE": 50.0, "Availability": 50.0, "Performance": 100.0, "Quality": 100.0
        }


class TestRounding:

    @pytest.mark.parametrize("value, expected", [
        (2.675, 2.68),
        (33.335, 33.34),
        (0.004, 0.0),
        (99.999, 100.0),
        (0, 0.0),
    ])
    def test_round_percentage_half_up(self, value, expected):
        assert round_percentage(value) == expected

    def test_round_length_beyond_default_precision(self):
        assert round_length(1.5e40) == 15 * 10 ** 39

    @pytest.mark.parametrize("value, expected", [(64.5, 65), (64.49, 64), (0.0, 0), (12, 12)])
    def test_round_length_half_up(self, value, expected):
        assert round_length(value) == expected
