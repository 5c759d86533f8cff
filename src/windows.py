"""Analysis window and sub-window calculation."""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from constants import START_FIXED_DATE, WEEK_DAYS, WEEK_ROLLING_7_DAY
from engine_config import EngineConfig
from schemas import AnalysisWindow, DailyCounts

log = logging.getLogger("windows")


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def week_start(end: date, policy: str) -> date:
    """First day of the "current week" ending at *end*.

    rolling_7_day   -> the seven days ending at *end* (end - 6)
    calendar_monday -> Monday on or before *end*
    """
    if policy == WEEK_ROLLING_7_DAY:
        return end - timedelta(days=WEEK_DAYS - 1)
    return end - timedelta(days=end.weekday())


def compute_window(reconciled: Sequence[DailyCounts], now: date,
                   config: Optional[EngineConfig] = None) -> Optional[AnalysisWindow]:
    """Derive the analysis window from reconciled rows and a reference date.

    Returns None when there are no rows; callers treat that as the canonical
    empty result.
    """
    if not reconciled:
        return None
    config = config or EngineConfig()

    earliest = min(r.date for r in reconciled)
    latest = max(r.date for r in reconciled)

    if config.analysis_start_policy == START_FIXED_DATE:
        start = config.analysis_start
    else:
        start = month_start(earliest)

    end = min(now, latest)
    if config.hard_cap_end_date is not None:
        end = min(end, config.hard_cap_end_date)

    if start > end:
        log.warning("Analysis start %s is after end %s; collapsing window to %s", start, end, end)
        start = end

    return AnalysisWindow(
        start=start,
        end=end,
        current_week_start=week_start(end, config.week_start_policy),
        current_month_start=month_start(end),
        current_month_end=month_end(end),
        year_start=max(start, date(end.year, 1, 1)),
    )
