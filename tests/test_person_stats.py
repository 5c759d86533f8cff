"""
Tests for per-entity statistics.

Covers: streak scan, quietest 7-day window, peak day tie-break, windowed
sums, averages and degenerate inputs.
"""
from datetime import date, timedelta

import pandas as pd
import pytest

from analytics.person_stats import (
    compute_person_stats,
    longest_runs,
    peak_day,
    quietest_period,
    window_sum,
)
from schemas import AnalysisWindow


def _series(counts, start=date(2024, 1, 1)):
    idx = pd.date_range(start, periods=len(counts), freq="D", name="date")
    return pd.Series(counts, index=idx, dtype="int64")


def _window(start, end, week_start=None, month_start=None, month_end=None, year_start=None):
    return AnalysisWindow(
        start=start,
        end=end,
        current_week_start=week_start or end,
        current_month_start=month_start or start,
        current_month_end=month_end or end,
        year_start=year_start or start,
    )


# ─── longest_runs ─────────────────────────────────────────────


class TestLongestRuns:

    def test_mixed_sequence(self):
        assert longest_runs([1, 1, 0, 1, 1, 1, 0, 0]) == (3, 2)

    def test_all_active(self):
        assert longest_runs([2, 5, 1]) == (3, 0)

    def test_all_zero(self):
        assert longest_runs([0, 0, 0, 0]) == (0, 4)

    def test_empty(self):
        assert longest_runs([]) == (0, 0)


# ─── quietest_period ──────────────────────────────────────────


class TestQuietestPeriod:

    def test_finds_all_zero_week(self):
        s = _series([5] * 7 + [0] * 7)
        start, total = quietest_period(s)
        assert start == date(2024, 1, 8)
        assert total == 0

    def test_ties_resolve_to_earliest_window(self):
        s = _series([1] * 10)
        start, total = quietest_period(s)
        assert start == date(2024, 1, 1)
        assert total == 7

    def test_fewer_than_seven_days_defaults_to_start(self):
        s = _series([3, 0, 2])
        start, total = quietest_period(s)
        assert start == date(2024, 1, 1)
        assert total == 5

    def test_empty_series(self):
        assert quietest_period(_series([])) == (None, 0)


# ─── peak_day ─────────────────────────────────────────────────


class TestPeakDay:

    def test_first_maximum_wins(self):
        assert peak_day(_series([1, 3, 3, 2])) == (date(2024, 1, 2), 3)

    def test_all_zero_defaults_to_first_day(self):
        assert peak_day(_series([0, 0, 0])) == (date(2024, 1, 1), 0)


# ─── window_sum ───────────────────────────────────────────────


class TestWindowSum:

    def test_bounds_are_inclusive(self):
        s = _series([1, 2, 3, 4, 5])
        assert window_sum(s, date(2024, 1, 2), date(2024, 1, 4)) == 9

    def test_window_outside_series_is_zero(self):
        s = _series([1, 2, 3])
        assert window_sum(s, date(2023, 1, 1), date(2023, 1, 31)) == 0


# ─── compute_person_stats ─────────────────────────────────────


class TestComputePersonStats:

    def test_full_record(self):
        counts = [2, 0, 2, 1, 0, 0, 4, 1, 1, 0]
        frame = pd.DataFrame({"J": counts}, index=_series(counts).index)
        start = date(2024, 1, 1)
        end = start + timedelta(days=len(counts) - 1)
        w = _window(start, end, week_start=date(2024, 1, 8))
        st = compute_person_stats(frame, w, "J")

        assert st.total_count == 11
        assert st.total_days == 10
        assert st.total_active_days == 6
        assert st.zero_days == 4
        assert st.current_week == 2
        assert st.current_month == 11
        assert st.year_total == 11
        assert st.peak_day == date(2024, 1, 7)
        assert st.peak_day_count == 4
        assert st.longest_streak == 3
        assert st.longest_zero_streak == 2
        assert st.weekly_avg == pytest.approx(11 / (10 / 7))
        assert st.monthly_avg == pytest.approx(11 / (10 / 30.436875))

    def test_no_window_gives_zero_record(self):
        st = compute_person_stats(pd.DataFrame(columns=["J"]), None, "J")
        assert st.total_count == 0
        assert st.weekly_avg == 0.0
        assert st.peak_day is None
        assert st.quietest_period_start is None

    def test_all_zero_timeline(self):
        counts = [0] * 9
        frame = pd.DataFrame({"J": counts}, index=_series(counts).index)
        w = _window(date(2024, 1, 1), date(2024, 1, 9))
        st = compute_person_stats(frame, w, "J")
        assert st.peak_day == date(2024, 1, 1)
        assert st.peak_day_count == 0
        assert st.longest_streak == 0
        assert st.longest_zero_streak == 9
        assert st.quietest_period_start == date(2024, 1, 1)
