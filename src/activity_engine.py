"""
Activity Analytics Engine
=========================
Turns raw (date, entity, count) observations into one immutable
AnalyticsResult.

Architecture (5 layers):
  Layer 0 - Reconcile:  merge sources, sum duplicate (date, entity) pairs,
            drop future-dated rows.
  Layer 1 - Window + timeline:  derive the analysis window and build the
            zero-filled, gap-free daily timeline over it.
  Layer 2 - Per-entity stats:  windowed sums, averages, peak day, streaks,
            quietest 7-day period.
  Layer 3 - Cross-entity:  weekday pattern, pairwise Pearson, recent trend.
  Layer 4 - Insights:  fixed-order, typed insight records.

The engine holds no state between runs.  Calling run() twice with the same
observations and `now` gives equal results.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from analytics.cross_entity import compute_cross_entity
from analytics.person_stats import compute_all_stats
from engine_config import EngineConfig
from pipeline.insight_builder import build_insights
from reconciler import reconcile_observations
from schemas import (
    AnalysisWindow,
    AnalyticsResult,
    DailyCounts,
    DateRange,
    DayRecord,
    Observation,
)
from windows import compute_window

log = logging.getLogger("activity_engine")


def build_timeline_frame(reconciled: Sequence[DailyCounts],
                         window: Optional[AnalysisWindow],
                         entities: Sequence[str]) -> pd.DataFrame:
    """Zero-filled daily frame over [window.start, window.end].

    Exactly one row per calendar day; days with no observations get 0 for
    every entity.  Rows outside the window are dropped.
    """
    if window is None:
        return pd.DataFrame(columns=list(entities), index=pd.DatetimeIndex([], name="date"), dtype="int64")

    days = pd.date_range(window.start, window.end, freq="D", name="date")
    if reconciled:
        sparse = pd.DataFrame(
            [[r.counts.get(e, 0) for e in entities] for r in reconciled],
            index=pd.DatetimeIndex([pd.Timestamp(r.date) for r in reconciled], name="date"),
            columns=list(entities),
        )
    else:
        sparse = pd.DataFrame(columns=list(entities), dtype="int64")
    return sparse.reindex(days, fill_value=0).astype("int64")


def frame_to_records(frame: pd.DataFrame, entities: Sequence[str]) -> List[DayRecord]:
    return [
        DayRecord(date=ts.date(), counts={e: int(row[e]) for e in entities})
        for ts, row in frame.iterrows()
    ]


class ActivityEngine:
    """
    Orchestrates all layers of one analytics run.
    Pure: no I/O, no caching, nothing kept between calls.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def run(self, observations: Iterable[Observation], now: Optional[date] = None) -> AnalyticsResult:
        """Run layers 0-4 and return the assembled result."""
        now = now or date.today()
        cfg = self.config
        entities = list(cfg.entities)

        reconciled = reconcile_observations(observations, today=now, entities=entities)
        if not reconciled:
            log.info("No observations on or before %s; returning empty result", now)

        window = compute_window(reconciled, now, cfg)
        frame = build_timeline_frame(reconciled, window, entities)

        stats = compute_all_stats(frame, window, entities)
        cross = compute_cross_entity(frame, window, entities, cfg.week_start_policy)
        insights = build_insights(stats, cross, cfg.noise_threshold, entities)

        date_range = DateRange(start=window.start, end=window.end) if window else None

        log.info(
            "ACTIVITY DIGEST (%s, %d days)  reconciled=%d  insights=%d  trend=%+d",
            f"{window.start} -> {window.end}" if window else "empty",
            len(frame),
            len(reconciled),
            len(insights),
            cross.trend_delta,
        )

        return AnalyticsResult(
            data_points=tuple(frame_to_records(frame, entities)),
            stats=stats,
            insights=tuple(insights),
            date_range=date_range,
            window=window,
            cross_entity=cross,
        )


def analyze(observations: Iterable[Observation], now: Optional[date] = None,
            config: Optional[EngineConfig] = None) -> AnalyticsResult:
    """Convenience wrapper: one engine run with the given config."""
    return ActivityEngine(config).run(observations, now=now)
