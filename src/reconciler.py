"""
Observation reconciliation.

Merges observations from any number of sources into one row per calendar
day.  A date may legitimately appear in more than one sheet with partial
counts, so duplicate (date, entity) pairs are summed, never replaced.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Sequence

import pandas as pd

from constants import ENTITIES
from schemas import DailyCounts, Observation

log = logging.getLogger("reconciler")


def _empty_frame(entities: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(columns=list(entities), index=pd.DatetimeIndex([], name="date"), dtype="int64")


def observations_frame(observations: Iterable[Observation],
                       entities: Sequence[str] = ENTITIES) -> pd.DataFrame:
    """Pivot observations to a date-indexed frame, one column per entity.

    Duplicate (date, entity) pairs are summed.  Entities with no observations
    still get a column of zeros.  The index is an ascending DatetimeIndex.
    """
    rows = [(o.date, o.entity, o.count) for o in observations]
    if not rows:
        return _empty_frame(entities)

    df = pd.DataFrame(rows, columns=["date", "entity", "count"])
    unknown = sorted(set(df["entity"]) - set(entities))
    if unknown:
        log.warning("Ignoring observations for unknown entities: %s", ", ".join(map(str, unknown)))
        df = df[df["entity"].isin(entities)].copy()
        if df.empty:
            return _empty_frame(entities)

    df["date"] = pd.to_datetime(df["date"])
    wide = (
        df.groupby(["date", "entity"])["count"].sum()
        .unstack("entity")
        .reindex(columns=list(entities))
        .fillna(0)
        .astype("int64")
        .sort_index()
    )
    wide.columns.name = None
    return wide


def reconcile_observations(observations: Iterable[Observation],
                           today: date,
                           entities: Sequence[str] = ENTITIES) -> List[DailyCounts]:
    """Return unique-by-date daily counts, ascending, without future dates.

    `today` is inclusive: anything dated strictly after it is treated as a
    data-entry artifact and dropped.
    """
    wide = observations_frame(observations, entities)
    if wide.empty:
        return []

    n_before = len(wide)
    wide = wide[wide.index <= pd.Timestamp(today)]
    n_future = n_before - len(wide)
    if n_future:
        log.info("Filtered %d future-dated day(s) after %s", n_future, today)

    return [
        DailyCounts(date=ts.date(), counts={e: int(row[e]) for e in entities})
        for ts, row in wide.iterrows()
    ]
