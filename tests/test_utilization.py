"""Tests for the interval merge utilization calculator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.batch import Batch
from engine.errors import UtilizationInvariantError
from engine.utilization import (
    clip_to_month,
    merge_intervals,
    occupied_days,
    utilization,
    format_utilization,
)
import engine.utilization as utilization_module


def make_batch(start, end, name="HTL-201"):
    return Batch(category="OLED", name=name, start_date=start, end_date=end)


class TestClipToMonth:
    def test_inside_month(self):
        assert clip_to_month(make_batch("2024-01-03", "2024-01-09"), "2024-01") == (3, 9)

    def test_spanning_months_is_clipped(self):
        batch = make_batch("2023-11-20", "2024-02-10")
        assert clip_to_month(batch, "2023-12") == (1, 31)
        assert clip_to_month(batch, "2024-02") == (1, 10)
        assert clip_to_month(batch, "2023-11") == (20, 30)

    def test_no_overlap(self):
        assert clip_to_month(make_batch("2024-02-01", "2024-02-05"), "2024-01") is None

    def test_unparseable_dates(self):
        assert clip_to_month(make_batch("not-a-date", "2024-01-05"), "2024-01") is None
        assert clip_to_month(make_batch("", ""), "2024-01") is None

    def test_reversed_range_contributes_nothing(self):
        assert clip_to_month(make_batch("2024-01-20", "2024-01-10"), "2024-01") is None


class TestMergeIntervals:
    def test_overlapping(self):
        assert merge_intervals([(8, 15), (1, 10)]) == [(1, 15)]

    def test_adjacent_intervals_merge(self):
        assert merge_intervals([(1, 5), (6, 9)]) == [(1, 9)]

    def test_gap_of_two_days_does_not_merge(self):
        assert merge_intervals([(1, 5), (10, 12)]) == [(1, 5), (10, 12)]

    def test_contained_interval(self):
        assert merge_intervals([(1, 20), (5, 6)]) == [(1, 20)]

    def test_empty(self):
        assert merge_intervals([]) == []


class TestUtilization:
    def test_overlap_example(self):
        batches = [make_batch("2024-01-01", "2024-01-10"), make_batch("2024-01-08", "2024-01-15")]
        util = utilization(batches, "2024-01")
        assert util == pytest.approx(15 / 31 * 100)
        assert format_utilization(util) == "48.4%"

    def test_disjoint_intervals(self):
        batches = [make_batch("2024-01-01", "2024-01-05"), make_batch("2024-01-10", "2024-01-12")]
        assert occupied_days(batches, "2024-01") == 8
        assert format_utilization(utilization(batches, "2024-01")) == "25.8%"

    def test_disjoint_intervals_february(self):
        batches = [make_batch("2023-02-01", "2023-02-05"), make_batch("2023-02-10", "2023-02-12")]
        assert utilization(batches, "2023-02") == pytest.approx(8 / 28 * 100)

    def test_no_batches(self):
        assert utilization([], "2024-01") == 0
        assert utilization(None, "2024-01") == 0

    def test_full_month_and_overflow_is_exactly_100(self):
        batches = [make_batch("2023-12-15", "2024-02-15"), make_batch("2024-01-01", "2024-01-31")]
        assert utilization(batches, "2024-01") == pytest.approx(100.0)

    def test_occupied_days_never_exceed_month(self):
        batches = [make_batch(f"2024-02-{d:02d}", f"2024-02-{min(d + 6, 29):02d}") for d in range(1, 30, 3)]
        assert occupied_days(batches, "2024-02") <= 29
        assert utilization(batches, "2024-02") <= 100

    def test_malformed_batches_ignored(self):
        batches = [make_batch("garbage", "2024-01-05"), make_batch("2024-01-01", "2024-01-03")]
        assert occupied_days(batches, "2024-01") == 3

    def test_invalid_month_is_zero(self):
        assert utilization([make_batch("2024-01-01", "2024-01-03")], "2024-13") == 0

    def test_invariant_violation_raises(self, monkeypatch):
        monkeypatch.setattr(utilization_module, "occupied_days", lambda batches, month: 40)
        with pytest.raises(UtilizationInvariantError):
            utilization([make_batch("2024-01-01", "2024-01-03")], "2024-01")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
