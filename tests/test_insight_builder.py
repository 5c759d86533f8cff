"""
Tests for the insight builder module.

Covers: fixed ordering, leader tie-breaks, conditional insights, trend
sign handling and the CLI line renderer.
"""
from constants import WEEKDAY_NAMES
from pipeline.insight_builder import build_insights, format_insight_lines
from schemas import CrossEntityStats, PersonStats


def _stats(**overrides):
    base = {e: PersonStats(entity=e) for e in ("J", "A", "M")}
    for entity, fields in overrides.items():
        base[entity] = PersonStats(entity=entity, **fields)
    return base


def _cross(delta=0, peak="Monday", peak_total=0):
    return CrossEntityStats(
        weekday_totals={name: 0 for name in WEEKDAY_NAMES},
        peak_weekday=peak,
        peak_weekday_total=peak_total,
        trend_delta=delta,
    )


class TestBuildInsights:

    def test_leader_tie_goes_to_first_entity(self):
        stats = _stats(J={"total_count": 100}, A={"total_count": 100}, M={"total_count": 50})
        insights = build_insights(stats, _cross())
        assert insights[0].kind == "comparison"
        assert insights[0].entity == "J"
        assert insights[0].metric == "100 total"

    def test_strictly_greater_later_entity_leads(self):
        stats = _stats(J={"total_count": 10}, M={"total_count": 11})
        assert build_insights(stats, _cross())[0].entity == "M"

    def test_order_with_all_optional_insights(self):
        stats = _stats(
            J={"total_count": 5, "longest_streak": 2, "longest_zero_streak": 4, "current_month": 1},
        )
        insights = build_insights(stats, _cross(delta=-9, peak="Friday", peak_total=12))
        kinds = [i.kind for i in insights]
        assert kinds == ["comparison", "streak", "streak", "peak", "pattern", "anomaly", "pattern"]
        assert insights[4].title == "Fridays are the most active"
        assert insights[5].title == "Activity decreasing recently"
        assert insights[5].metric == "-9"

    def test_dry_streak_omitted_when_zero(self):
        insights = build_insights(_stats(J={"longest_streak": 3}), _cross())
        titles = [i.title for i in insights]
        assert not any("dry streak" in t for t in titles)
        assert len(insights) == 5

    def test_trend_at_threshold_is_suppressed(self):
        insights = build_insights(_stats(), _cross(delta=5), noise_threshold=5)
        assert not any("recently" in i.title for i in insights)

    def test_increase_is_pattern_with_plus_sign(self):
        insights = build_insights(_stats(), _cross(delta=6), noise_threshold=5)
        trend = [i for i in insights if "recently" in i.title][0]
        assert trend.kind == "pattern"
        assert trend.metric == "+6"
        assert trend.entity is None

    def test_zero_day_summary_is_last(self):
        stats = _stats(J={"zero_days": 3}, A={"zero_days": 0}, M={"zero_days": 7})
        last = build_insights(stats, _cross())[-1]
        assert last.title == "Days with zero activity"
        assert last.metric == "J:3 A:0 M:7"

    def test_does_not_mutate_stats(self):
        stats = _stats(J={"total_count": 4})
        before = {k: v.model_dump() for k, v in stats.items()}
        build_insights(stats, _cross(delta=20))
        assert {k: v.model_dump() for k, v in stats.items()} == before


class TestFormatInsightLines:

    def test_numbered_lines_with_metric(self):
        insights = build_insights(_stats(J={"total_count": 4}), _cross())
        lines = format_insight_lines(insights)
        assert lines[0].startswith("1. [comparison] J is the most active overall")
        assert lines[0].endswith("(4 total)")

    def test_limit(self):
        insights = build_insights(_stats(), _cross())
        assert len(format_insight_lines(insights, limit=2)) == 2
