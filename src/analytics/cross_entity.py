"""Cross-entity helpers: weekday pattern, Pearson pairs and recent trend."""

from __future__ import annotations

import math
from datetime import date, timedelta
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from analytics.person_stats import window_sum
from constants import WEEK_DAYS, WEEK_ROLLING_7_DAY, WEEKDAY_NAMES
from schemas import AnalysisWindow, Correlation, CrossEntityStats


def weekday_totals(frame: pd.DataFrame, entities: Sequence[str]) -> Dict[str, int]:
    """Sum of all entities per weekday, Monday..Sunday."""
    totals = {name: 0 for name in WEEKDAY_NAMES}
    if frame.empty:
        return totals
    daily = frame[list(entities)].sum(axis=1)
    by_weekday = daily.groupby(daily.index.weekday).sum()
    for idx, value in by_weekday.items():
        totals[WEEKDAY_NAMES[int(idx)]] = int(value)
    return totals


def peak_weekday(totals: Dict[str, int]) -> Tuple[str, int]:
    """Busiest weekday; the earlier weekday in Monday-first order wins ties."""
    best_day, best = WEEKDAY_NAMES[0], totals.get(WEEKDAY_NAMES[0], 0)
    for name in WEEKDAY_NAMES[1:]:
        if totals.get(name, 0) > best:
            best_day, best = name, totals[name]
    return best_day, best


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r of two equal-length series.

    Returns 0.0 instead of NaN when either series is constant or there are
    fewer than two points.
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    if len(x) != len(y):
        raise ValueError(f"series lengths differ: {len(x)} != {len(y)}")
    if len(x) < 2:
        return 0.0
    dx = x - x.mean()
    dy = y - y.mean()
    den_x = float(np.dot(dx, dx))
    den_y = float(np.dot(dy, dy))
    if den_x == 0 or den_y == 0:
        return 0.0
    r = float(np.dot(dx, dy)) / math.sqrt(den_x * den_y)
    # float rounding can push |r| a hair past 1
    return max(-1.0, min(1.0, r))


def pairwise_correlations(frame: pd.DataFrame, entities: Sequence[str]) -> List[Correlation]:
    out: List[Correlation] = []
    for a, b in combinations(entities, 2):
        if frame.empty:
            r = 0.0
        else:
            r = pearson(frame[a].to_numpy(), frame[b].to_numpy())
        out.append(Correlation(a=a, b=b, r=round(r, 6)))
    return out


def trend_blocks(end: date, policy: str) -> Tuple[Tuple[date, date], Tuple[date, date]]:
    """(recent, previous) 7-day blocks used for the trend delta.

    calendar_monday -> the last complete Monday-Sunday week on or before
                       *end* (a week ending on *end* counts) and the week
                       before it
    rolling_7_day   -> the seven days ending at *end* and the seven before
    """
    if policy == WEEK_ROLLING_7_DAY:
        recent_end = end
    else:
        recent_end = end - timedelta(days=(end.weekday() + 1) % 7)
    recent_start = recent_end - timedelta(days=WEEK_DAYS - 1)
    prev_end = recent_start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=WEEK_DAYS - 1)
    return (recent_start, recent_end), (prev_start, prev_end)


def recent_trend(frame: pd.DataFrame, window: AnalysisWindow, policy: str,
                 entities: Sequence[str]) -> Tuple[int, int]:
    """All-entity totals for the recent and previous 7-day blocks."""
    (rs, re_), (ps, pe) = trend_blocks(window.end, policy)
    daily = frame[list(entities)].sum(axis=1)
    return window_sum(daily, rs, re_), window_sum(daily, ps, pe)


def compute_cross_entity(frame: pd.DataFrame, window: Optional[AnalysisWindow],
                         entities: Sequence[str], week_policy: str) -> CrossEntityStats:
    totals = weekday_totals(frame, entities)
    day, day_total = peak_weekday(totals)
    correlations = pairwise_correlations(frame, entities)

    recent = previous = 0
    if window is not None and not frame.empty:
        recent, previous = recent_trend(frame, window, week_policy, entities)

    return CrossEntityStats(
        weekday_totals=totals,
        peak_weekday=day,
        peak_weekday_total=day_total,
        correlations=tuple(correlations),
        recent_total=recent,
        previous_total=previous,
        trend_delta=recent - previous,
    )
