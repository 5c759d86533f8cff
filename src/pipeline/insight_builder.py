"""Helpers for building ordered insight records for UI consumption."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

from constants import DEFAULT_NOISE_THRESHOLD, ENTITIES
from schemas import CrossEntityStats, Insight, PersonStats


def _leader(stats: Dict[str, PersonStats], entities: Sequence[str],
            value: Callable[[PersonStats], int]) -> Tuple[str, int]:
    """Left-to-right strict-max reduction seeded with the first entity at 0.

    Ties (including all-zero) go to the earliest entity in canonical order.
    """
    best_entity, best = entities[0], 0
    for e in entities:
        v = value(stats[e])
        if v > best:
            best_entity, best = e, v
    return best_entity, best


def build_insights(stats: Dict[str, PersonStats], cross: CrossEntityStats,
                   noise_threshold: float = DEFAULT_NOISE_THRESHOLD,
                   entities: Sequence[str] = ENTITIES) -> List[Insight]:
    """Turn statistics into insights, always in the same order.

    Consumers display insights positionally, so the sequence is part of the
    contract: overall leader, longest streak, longest dry streak (if any),
    month leader, busiest weekday, recent trend (if above noise), zero days.
    """
    insights: List[Insight] = []

    leader, total = _leader(stats, entities, lambda s: s.total_count)
    insights.append(Insight(
        kind="comparison",
        title=f"{leader} is the most active overall",
        description=(
            f"With a total of {total} across the entire period. This is the sum "
            f"of daily counts for that person over the analysis window."
        ),
        metric=f"{total} total",
        entity=leader,
    ))

    streaker, streak = _leader(stats, entities, lambda s: s.longest_streak)
    insights.append(Insight(
        kind="streak",
        title=f"{streaker} has the longest streak",
        description=(
            f"Maintained consistency for {streak} consecutive days. This is the "
            f"longest run of days with at least one activity."
        ),
        metric=f"{streak} days",
        entity=streaker,
    ))

    dry, dry_streak = _leader(stats, entities, lambda s: s.longest_zero_streak)
    if dry_streak > 0:
        insights.append(Insight(
            kind="streak",
            title=f"{dry} had the longest dry streak",
            description=(
                f"A longest run of {dry_streak} consecutive days with zero activity. "
                f"This highlights the longest period of inactivity for that person."
            ),
            metric=f"{dry_streak} days",
            entity=dry,
        ))

    month_leader, month_count = _leader(stats, entities, lambda s: s.current_month)
    insights.append(Insight(
        kind="peak",
        title=f"{month_leader} is leading this month",
        description=(
            f"Most active in the current month with {month_count} total. Counts "
            f"are within the current month of the analysis window."
        ),
        metric=f"{month_count} this month",
        entity=month_leader,
    ))

    day = cross.peak_weekday
    insights.append(Insight(
        kind="pattern",
        title=f"{day}s are the most active",
        description=(
            f"Overall activity peaks on {day}s across all individuals. "
            f"Aggregated Monday to Sunday over the analysis window."
        ),
        metric=f"{cross.peak_weekday_total} total",
    ))

    change = cross.trend_delta
    if abs(change) > noise_threshold:
        rising = change > 0
        insights.append(Insight(
            kind="pattern" if rising else "anomaly",
            title="Activity increasing recently" if rising else "Activity decreasing recently",
            description=(
                f"Overall activity {'increased' if rising else 'decreased'} by "
                f"{abs(change)} in the most recent week compared to the previous week."
            ),
            metric=f"{'+' if rising else ''}{change}",
        ))

    insights.append(Insight(
        kind="pattern",
        title="Days with zero activity",
        description="Counts of calendar days with zero activity per person (within analysis window).",
        metric=" ".join(f"{e}:{stats[e].zero_days}" for e in entities),
    ))

    return insights


def format_insight_lines(insights: Sequence[Insight], limit: int = 12) -> List[str]:
    """Numbered one-line renderings for log and CLI output."""
    lines = []
    for idx, ins in enumerate(insights[:limit], start=1):
        line = f"{idx}. [{ins.kind}] {ins.title} - {ins.description}"
        if ins.metric:
            line += f" ({ins.metric})"
        lines.append(line)
    return lines
