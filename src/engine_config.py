"""
Engine configuration loaded from the environment (.env supported).
Single source of truth for analysis-window policies and refresh settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from dotenv import load_dotenv

from constants import (
    DEFAULT_NOISE_THRESHOLD,
    ENTITIES,
    START_FIRST_OBSERVATION_MONTH,
    START_FIXED_DATE,
    WEEK_CALENDAR_MONDAY,
    WEEK_ROLLING_7_DAY,
)

load_dotenv()

START_POLICIES = (START_FIXED_DATE, START_FIRST_OBSERVATION_MONTH)
WEEK_POLICIES = (WEEK_ROLLING_7_DAY, WEEK_CALENDAR_MONDAY)

# First day of the tracking sheet
DEFAULT_FIXED_START = date(2023, 7, 10)

DEFAULT_SHEET_FETCH_TIMEOUT = 30.0
DEFAULT_REFRESH_INTERVAL_MINUTES = 60


@dataclass(frozen=True)
class EngineConfig:
    """Policies recognised by the analytics engine."""

    analysis_start_policy: str = START_FIRST_OBSERVATION_MONTH
    analysis_start: Optional[date] = None
    week_start_policy: str = WEEK_CALENDAR_MONDAY
    hard_cap_end_date: Optional[date] = None
    noise_threshold: float = DEFAULT_NOISE_THRESHOLD
    entities: Tuple[str, ...] = field(default=ENTITIES)

    def __post_init__(self):
        if self.analysis_start_policy not in START_POLICIES:
            raise ValueError(
                f"analysis_start_policy must be one of {START_POLICIES}, "
                f"got {self.analysis_start_policy!r}"
            )
        if self.week_start_policy not in WEEK_POLICIES:
            raise ValueError(
                f"week_start_policy must be one of {WEEK_POLICIES}, "
                f"got {self.week_start_policy!r}"
            )
        if self.analysis_start_policy == START_FIXED_DATE and self.analysis_start is None:
            object.__setattr__(self, "analysis_start", DEFAULT_FIXED_START)
        if self.noise_threshold < 0:
            raise ValueError("noise_threshold must be >= 0")
        if not self.entities:
            raise ValueError("entities must not be empty")


@dataclass(frozen=True)
class SourceConfig:
    """Where the refresh pipeline reads its workbook from."""

    workbook_path: Optional[str] = None
    sheet_id: Optional[str] = None
    fetch_timeout: float = DEFAULT_SHEET_FETCH_TIMEOUT
    refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES
    status_path: Optional[str] = None


def _env_date(name: str) -> Optional[date]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {raw!r}") from None


def _env_number(name: str, default: float, cast=float):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from None


def load_engine_config() -> EngineConfig:
    """Build an EngineConfig from environment variables.

    ANALYSIS_START_POLICY  fixed_date | first_observation_month_start
    ANALYSIS_START         ISO date used by the fixed_date policy
    WEEK_START_POLICY      rolling_7_day | calendar_monday
    HARD_CAP_END_DATE      optional ISO date capping the analysis end
    NOISE_THRESHOLD        trend deltas at or below this are ignored
    """
    start_policy = (os.getenv("ANALYSIS_START_POLICY") or START_FIRST_OBSERVATION_MONTH).strip()
    week_policy = (os.getenv("WEEK_START_POLICY") or WEEK_CALENDAR_MONDAY).strip()
    return EngineConfig(
        analysis_start_policy=start_policy,
        analysis_start=_env_date("ANALYSIS_START"),
        week_start_policy=week_policy,
        hard_cap_end_date=_env_date("HARD_CAP_END_DATE"),
        noise_threshold=_env_number("NOISE_THRESHOLD", DEFAULT_NOISE_THRESHOLD),
    )


def load_source_config() -> SourceConfig:
    """Build a SourceConfig from environment variables."""
    return SourceConfig(
        workbook_path=(os.getenv("WORKBOOK_PATH") or "").strip() or None,
        sheet_id=(os.getenv("GOOGLE_SHEET_ID") or "").strip() or None,
        fetch_timeout=_env_number("SHEET_FETCH_TIMEOUT", DEFAULT_SHEET_FETCH_TIMEOUT),
        refresh_interval_minutes=_env_number(
            "REFRESH_INTERVAL_MINUTES", DEFAULT_REFRESH_INTERVAL_MINUTES, cast=int
        ),
        status_path=(os.getenv("PIPELINE_STATUS_PATH") or "").strip() or None,
    )
