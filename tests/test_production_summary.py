"""Tests for monthly produced length and reel change counting."""

from datetime import datetime, timezone

from oee_dashboard.config import settings
from oee_dashboard.services.production_summary import count_reel_changes, produced_length


def counter(make_sample, at, value, device_id="DEV-1"):
    return make_sample(at=at, attributes={"This Month Production": value}, device_id=device_id)


def reel(make_sample, minutes, value, device_id="DEV-1"):
    return make_sample(minutes, {"P_DT_BOBIN_FORMER_CHANGE": value}, device_id=device_id)


class TestProducedLength:

    def test_month_boundary_groups_are_separate(self, make_sample):
        samples = [
            counter(make_sample, datetime(2024, 1, 30, 8), 10),
            counter(make_sample, datetime(2024, 1, 31, 20), 50),
            counter(make_sample, datetime(2024, 2, 1, 6), 5),
            counter(make_sample, datetime(2024, 2, 2, 6), 30),
        ]
        assert produced_length(samples) == 65

    def test_same_month_different_years(self, make_sample):
        samples = [
            counter(make_sample, datetime(2023, 3, 1), 0),
            counter(make_sample, datetime(2023, 3, 2), 100),
            counter(make_sample, datetime(2024, 3, 1), 20),
            counter(make_sample, datetime(2024, 3, 2), 40),
        ]
        assert produced_length(samples) == 120

    def test_devices_are_separate(self, make_sample):
        samples = [
            counter(make_sample, datetime(2024, 3, 1), 100, device_id="A"),
            counter(make_sample, datetime(2024, 3, 2), 5, device_id="B"),
            counter(make_sample, datetime(2024, 3, 3), 150, device_id="A"),
            counter(make_sample, datetime(2024, 3, 4), 25, device_id="B"),
        ]
        assert produced_length(samples) == 70

    def test_missing_and_invalid_counters_are_skipped(self, make_sample):
        samples = [
            counter(make_sample, datetime(2024, 3, 1), "12.5"),
            counter(make_sample, datetime(2024, 3, 2), None),
            counter(make_sample, datetime(2024, 3, 3), "offline"),
            make_sample(at=datetime(2024, 3, 4), attributes={"MC_STATUS": 1}),
            counter(make_sample, datetime(2024, 3, 5), 23),
        ]
        assert produced_length(samples) == 11

    def test_rounds_half_up(self, make_sample):
        samples = [counter(make_sample, datetime(2024, 3, 1), 0), counter(make_sample, datetime(2024, 3, 2), 10.5)]
        assert produced_length(samples) == 11

    def test_no_counters_is_zero(self, make_sample):
        assert produced_length([]) == 0
        assert produced_length([counter(make_sample, datetime(2024, 3, 1), 42)]) == 0

    def test_months_follow_the_plant_clock(self, make_sample, monkeypatch):
        monkeypatch.setattr(settings, "PLANT_TIMEZONE", "Asia/Kolkata")
        # 19:00 UTC on Jan 31 is already Feb 1 in the plant
        samples = [
            counter(make_sample, datetime(2024, 1, 31, 10, tzinfo=timezone.utc), 10),
            counter(make_sample, datetime(2024, 1, 31, 18, tzinfo=timezone.utc), 50),
            counter(make_sample, datetime(2024, 1, 31, 19, tzinfo=timezone.utc), 5),
            counter(make_sample, datetime(2024, 2, 1, 6, tzinfo=timezone.utc), 30),
        ]
        assert produced_length(samples) == 65


class TestReelChanges:

    def test_counts_rising_edges(self, make_sample):
        values = ["0", "0", "1", "1", "0", "1"]
        samples = [reel(make_sample, i, value) for i, value in enumerate(values)]
        assert count_reel_changes(samples) == 2

    def test_leading_one_is_not_a_change(self, make_sample):
        samples = [reel(make_sample, i, value) for i, value in enumerate(["1", "0"])]
        assert count_reel_changes(samples) == 0

    def test_gaps_do_not_break_transitions(self, make_sample):
        samples = [
            reel(make_sample, 0, "0"),
            make_sample(1, {"MC_STATUS": 1}),
            reel(make_sample, 2, None),
            reel(make_sample, 3, "1"),
        ]
        assert count_reel_changes(samples) == 1

    def test_numeric_indicator_values(self, make_sample):
        samples = [reel(make_sample, 0, 0), reel(make_sample, 1, 1), reel(make_sample, 2, 0), reel(make_sample, 3, 1)]
        assert count_reel_changes(samples) == 2

    def test_orders_by_timestamp(self, make_sample):
        samples = [reel(make_sample, 2, "1"), reel(make_sample, 0, "1"), reel(make_sample, 1, "0")]
        assert count_reel_changes(samples) == 1

    def test_devices_are_not_interleaved(self, make_sample):
        samples = [reel(make_sample, 0, "0", device_id="A"), reel(make_sample, 1, "1", device_id="B")]
        assert count_reel_changes(samples) == 0
