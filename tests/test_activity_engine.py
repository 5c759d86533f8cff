"""
End-to-end tests for the activity engine.

Covers: the reference scenario, zero-fill completeness, idempotence,
merge correctness, future-date exclusion, empty input and policy wiring.
"""
from datetime import date, timedelta

import pytest

from activity_engine import ActivityEngine, analyze, build_timeline_frame
from constants import START_FIXED_DATE, WEEK_ROLLING_7_DAY
from engine_config import EngineConfig
from schemas import AnalyticsResult, Observation


def obs(d, entity, count):
    return Observation(date=d, entity=entity, count=count)


FIXED_JAN = EngineConfig(analysis_start_policy=START_FIXED_DATE, analysis_start=date(2024, 1, 1))


class TestReferenceScenario:

    def test_three_day_scenario(self):
        result = analyze(
            [obs(date(2024, 1, 1), "J", 2), obs(date(2024, 1, 2), "J", 0), obs(date(2024, 1, 3), "J", 2)],
            now=date(2024, 1, 3),
            config=FIXED_JAN,
        )
        j = result.stats["J"]
        assert j.total_count == 4
        assert j.longest_streak == 1
        assert j.longest_zero_streak == 1
        assert j.total_active_days == 2
        assert result.date_range.start == date(2024, 1, 1)
        assert result.date_range.end == date(2024, 1, 3)

    def test_merge_across_sources(self):
        result = analyze(
            [obs(date(2024, 1, 1), "J", 3), obs(date(2024, 1, 1), "J", 2)],
            now=date(2024, 1, 1),
            config=FIXED_JAN,
        )
        assert result.data_points[0].counts["J"] == 5


class TestTimelineInvariants:

    def test_zero_fill_has_one_record_per_day(self, series_builder):
        observations = [obs(date(2024, 1, 2), "A", 1), obs(date(2024, 1, 20), "M", 4)]
        result = analyze(observations, now=date(2024, 1, 31))
        dates = [dp.date for dp in result.data_points]
        start, end = result.date_range.start, result.date_range.end
        expected = [start + timedelta(days=i) for i in range((end - start).days + 1)]
        assert dates == expected
        assert len(set(dates)) == len(dates)
        assert result.data_points[0].counts == {"J": 0, "A": 0, "M": 0}

    def test_future_observation_never_in_timeline(self):
        today = date(2024, 1, 10)
        result = analyze(
            [obs(today, "J", 1), obs(today + timedelta(days=1), "J", 50)],
            now=today,
        )
        assert all(dp.date <= today for dp in result.data_points)
        assert result.stats["J"].total_count == 1

    def test_observations_before_fixed_start_are_excluded(self):
        cfg = EngineConfig(analysis_start_policy=START_FIXED_DATE, analysis_start=date(2024, 1, 5))
        result = analyze(
            [obs(date(2024, 1, 1), "J", 9), obs(date(2024, 1, 6), "J", 1)],
            now=date(2024, 1, 6),
            config=cfg,
        )
        assert result.data_points[0].date == date(2024, 1, 5)
        assert result.stats["J"].total_count == 1

    def test_build_timeline_frame_without_window(self):
        assert build_timeline_frame([], None, ["J"]).empty


class TestIdempotence:

    def test_same_input_same_output(self, series_builder):
        observations = (
            series_builder("J", date(2024, 2, 1), [1, 0, 3, 0, 0, 2, 5, 1, 0, 0, 0, 4])
            + series_builder("A", date(2024, 2, 3), [2, 2, 2, 0, 1])
        )
        engine = ActivityEngine()
        first = engine.run(observations, now=date(2024, 2, 20))
        second = engine.run(list(reversed(observations)), now=date(2024, 2, 20))
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestEmptyInput:

    def test_empty_returns_structurally_complete_result(self):
        result = analyze([], now=date(2024, 1, 1))
        assert isinstance(result, AnalyticsResult)
        assert result.data_points == ()
        assert result.date_range is None
        assert set(result.stats) == {"J", "A", "M"}
        assert all(s.total_count == 0 for s in result.stats.values())
        assert result.insights[0].title == "J is the most active overall"
        assert result.insights[-1].metric == "J:0 A:0 M:0"

    def test_only_future_observations_is_empty(self):
        result = analyze([obs(date(2030, 1, 1), "J", 1)], now=date(2024, 1, 1))
        assert result.date_range is None


class TestPolicies:

    def test_rolling_week_changes_current_week(self, series_builder):
        # 2024-01-10 is a Wednesday; calendar week covers Mon 8 - Wed 10
        observations = series_builder("J", date(2024, 1, 1), [1] * 10)
        calendar = analyze(observations, now=date(2024, 1, 10))
        rolling = analyze(observations, now=date(2024, 1, 10),
                          config=EngineConfig(week_start_policy=WEEK_ROLLING_7_DAY))
        assert calendar.stats["J"].current_week == 3
        assert rolling.stats["J"].current_week == 7

    def test_trend_insight_emitted_above_threshold(self, series_builder):
        observations = series_builder("M", date(2024, 1, 1), [0] * 7 + [2] * 7)
        result = analyze(observations, now=date(2024, 1, 14))
        trend = [i for i in result.insights if "recently" in i.title]
        assert len(trend) == 1
        assert trend[0].metric == "+14"

    def test_noise_threshold_is_configurable(self, series_builder):
        observations = series_builder("M", date(2024, 1, 1), [0] * 7 + [2] * 7)
        result = analyze(observations, now=date(2024, 1, 14), config=EngineConfig(noise_threshold=20))
        assert not any("recently" in i.title for i in result.insights)

    def test_result_is_frozen(self):
        result = analyze([obs(date(2024, 1, 1), "J", 1)], now=date(2024, 1, 1))
        with pytest.raises(Exception):
            result.insights = ()

    def test_json_uses_camel_case(self):
        result = analyze([obs(date(2024, 1, 1), "J", 1)], now=date(2024, 1, 1))
        payload = result.model_dump(mode="json", by_alias=True)
        assert "dataPoints" in payload
        assert "dateRange" in payload
        assert "longestZeroStreak" in payload["stats"]["J"]
        assert payload["dataPoints"][0] == {"date": "2024-01-01", "counts": {"J": 1, "A": 0, "M": 0}}
