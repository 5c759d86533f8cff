"""Per-entity statistics over the zero-filled daily timeline."""

from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from constants import AVG_MONTH_DAYS, WEEK_DAYS
from schemas import AnalysisWindow, PersonStats


def window_sum(series: pd.Series, start: date, end: date) -> int:
    """Sum of *series* between *start* and *end*, both inclusive."""
    mask = (series.index >= pd.Timestamp(start)) & (series.index <= pd.Timestamp(end))
    return int(series[mask].sum())


def longest_runs(values: Sequence[int]) -> Tuple[int, int]:
    """Longest run of days with count > 0 and longest run with count == 0."""
    longest = current = 0
    longest_zero = current_zero = 0
    for v in values:
        if v > 0:
            current += 1
            current_zero = 0
            longest = max(longest, current)
        else:
            current_zero += 1
            current = 0
            longest_zero = max(longest_zero, current_zero)
    return longest, longest_zero


def quietest_period(series: pd.Series) -> Tuple[Optional[date], int]:
    """Start date and total of the quietest 7-day window.

    Windows slide one day at a time; the earliest window wins ties.  With
    fewer than seven days the whole series is the only candidate.
    """
    if series.empty:
        return None, 0
    if len(series) < WEEK_DAYS:
        return series.index[0].date(), int(series.sum())

    sums = series.rolling(WEEK_DAYS).sum().to_numpy()[WEEK_DAYS - 1:]
    pos = int(np.argmin(sums))
    return series.index[pos].date(), int(sums[pos])


def peak_day(series: pd.Series) -> Tuple[Optional[date], int]:
    """Day with the highest count, earliest on ties; first day if all zero."""
    if series.empty:
        return None, 0
    pos = int(np.argmax(series.to_numpy()))
    return series.index[pos].date(), int(series.iloc[pos])


def compute_person_stats(frame: pd.DataFrame, window: Optional[AnalysisWindow],
                         entity: str) -> PersonStats:
    """Compute every PersonStats field for one entity.

    *frame* must already be the zero-filled timeline for *window*; running
    this over sparse observations would skip missing days instead of
    counting them as quiet ones.
    """
    if window is None or frame.empty or entity not in frame.columns:
        return PersonStats(entity=entity)

    series = frame[entity].astype("int64")
    total_days = len(series)
    total_count = int(series.sum())
    active_days = int((series > 0).sum())

    weeks = total_days / WEEK_DAYS
    months = total_days / AVG_MONTH_DAYS

    peak, peak_count = peak_day(series)
    longest, longest_zero = longest_runs(series.tolist())
    quiet_start, quiet_total = quietest_period(series)

    return PersonStats(
        entity=entity,
        current_week=window_sum(series, window.current_week_start, window.end),
        current_month=window_sum(series, window.current_month_start, window.current_month_end),
        year_total=window_sum(series, window.year_start, window.end),
        weekly_avg=total_count / weeks if weeks > 0 else 0.0,
        monthly_avg=total_count / months if months > 0 else 0.0,
        peak_day=peak,
        peak_day_count=peak_count,
        longest_streak=longest,
        longest_zero_streak=longest_zero,
        quietest_period_start=quiet_start,
        quietest_period_total=quiet_total,
        total_active_days=active_days,
        total_count=total_count,
        total_days=total_days,
        zero_days=total_days - active_days,
    )


def compute_all_stats(frame: pd.DataFrame, window: Optional[AnalysisWindow],
                      entities: Sequence[str]) -> Dict[str, PersonStats]:
    return {e: compute_person_stats(frame, window, e) for e in entities}
