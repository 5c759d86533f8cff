"""
Result and record models shared by the engine, the store and the API.

Every model is frozen against attribute assignment.  Dict fields such as
DailyCounts.counts and AnalyticsResult.stats are still plain dicts: callers
must treat a published result as read-only, and the API serializes a fresh
copy per request.  JSON uses camelCase field names, Python code uses
snake_case attributes.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

InsightKind = Literal["peak", "streak", "comparison", "pattern", "anomaly"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Observation(_Frozen):
    """One (date, entity, count) reading from an upstream source."""

    date: dt.date
    entity: str
    count: int = Field(ge=0)


class DailyCounts(_Frozen):
    """A reconciled day: per-entity counts summed across sources."""

    date: dt.date
    counts: Dict[str, int]


class DayRecord(DailyCounts):
    """One day of the zero-filled timeline."""


class AnalysisWindow(_Frozen):
    start: dt.date
    end: dt.date
    current_week_start: dt.date
    current_month_start: dt.date
    current_month_end: dt.date
    year_start: dt.date


class DateRange(_Frozen):
    start: dt.date
    end: dt.date


class PersonStats(_Frozen):
    entity: str
    current_week: int = 0
    current_month: int = 0
    year_total: int = 0
    weekly_avg: float = 0.0
    monthly_avg: float = 0.0
    peak_day: Optional[dt.date] = None
    peak_day_count: int = 0
    longest_streak: int = 0
    longest_zero_streak: int = 0
    quietest_period_start: Optional[dt.date] = None
    quietest_period_total: int = 0
    total_active_days: int = 0
    total_count: int = 0
    total_days: int = 0
    zero_days: int = 0


class Correlation(_Frozen):
    a: str
    b: str
    r: float


class CrossEntityStats(_Frozen):
    weekday_totals: Dict[str, int]
    peak_weekday: str
    peak_weekday_total: int
    correlations: Tuple[Correlation, ...] = ()
    recent_total: int = 0
    previous_total: int = 0
    trend_delta: int = 0


class Insight(_Frozen):
    kind: InsightKind
    title: str
    description: str
    metric: Optional[str] = None
    entity: Optional[str] = None


class AnalyticsResult(_Frozen):
    """Everything one engine run produces."""

    data_points: Tuple[DayRecord, ...]
    stats: Dict[str, PersonStats]
    insights: Tuple[Insight, ...]
    date_range: Optional[DateRange]
    window: Optional[AnalysisWindow]
    cross_entity: CrossEntityStats
