"""Stress trend classification, aggregation and insights."""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from meditation_api.services.stress_analysis_service import (
    StressAnalysisService,
    FLUCTUATING,
    IMPROVING,
    INSUFFICIENT_DATA,
    STABLE,
    WORSENING,
)

from conftest import make_cursor

MODULE = "meditation_api.services.stress_analysis_service"


def _series(scores):
    return [{"score": s} for s in scores]


def _at(year, month, day, hour, score, triggers=None):
    return {
        "score": score,
        "timestamp": datetime(year, month, day, hour, tzinfo=timezone.utc),
        "triggers": triggers or [],
    }


class TestTrend:

    def test_rising_scores_are_worsening(self):
        assert StressAnalysisService.analyze_stress_trend(_series([3, 4, 5, 6, 7])) == WORSENING

    def test_falling_scores_are_improving(self):
        assert StressAnalysisService.analyze_stress_trend(_series([7, 6, 5, 4, 3])) == IMPROVING

    @pytest.mark.parametrize("scores,expected", [
        ([3.1, 3.6, 4.1], WORSENING),
        ([4.1, 3.6, 3.1], IMPROVING),
        ([2.2, 2.7, 3.1], STABLE),
    ])
    def test_one_point_gap_is_a_trend(self, scores, expected):
        assert StressAnalysisService.analyze_stress_trend(_series(scores)) == expected

    def test_wide_spread_is_fluctuating(self):
        assert StressAnalysisService.analyze_stress_trend(_series([1, 9, 1, 9, 1, 9])) == FLUCTUATING

    def test_flat_scores_are_stable(self):
        assert StressAnalysisService.analyze_stress_trend(_series([5, 5.5, 5, 5.2])) == STABLE

    def test_fewer_than_three_points(self):
        assert StressAnalysisService.analyze_stress_trend(_series([2, 9])) == INSUFFICIENT_DATA
        assert StressAnalysisService.analyze_stress_trend([]) == INSUFFICIENT_DATA


class TestAggregates:

    def test_average_is_rounded_to_one_decimal(self):
        assert StressAnalysisService.calculate_average_stress_level(_series([1, 2, 2])) == 1.7
        assert StressAnalysisService.calculate_average_stress_level([]) == 0

    def test_population_standard_deviation(self):
        assert StressAnalysisService.calculate_standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0
        assert StressAnalysisService.calculate_standard_deviation([]) == 0.0

    def test_common_triggers_ranked_by_count(self):
        assessments = [
            {"triggers": ["work", "sleep"]},
            {"triggers": ["work"]},
            {"triggers": ["work", "traffic"]},
            {"triggers": ["sleep"]},
            {},
        ]
        result = StressAnalysisService.identify_common_triggers(assessments, limit=2)
        assert result == [{"trigger": "work", "count": 3}, {"trigger": "sleep", "count": 2}]

    def test_common_symptoms_use_symptom_key(self):
        result = StressAnalysisService.identify_common_symptoms([{"symptoms": ["headache"]}])
        assert result == [{"symptom": "headache", "count": 1}]

    def test_peak_times_bucket_by_utc_hour(self):
        assessments = [
            _at(2024, 1, 1, 8, 8),
            _at(2024, 1, 2, 8, 6),
            _at(2024, 1, 3, 20, 9),
            _at(2024, 1, 4, 0, 2),
        ]
        peaks = StressAnalysisService.identify_peak_stress_times(assessments)
        assert peaks[0] == {"hour": 20, "average_stress": 9.0, "assessment_count": 1, "time_of_day": "8:00 PM"}
        assert peaks[1] == {"hour": 8, "average_stress": 7.0, "assessment_count": 2, "time_of_day": "8:00 AM"}
        assert peaks[2]["time_of_day"] == "12:00 AM"

    def test_day_type_averages(self):
        # 2024-01-01 is a Monday, 2024-01-06 a Saturday
        assessments = [_at(2024, 1, 1, 9, 8), _at(2024, 1, 6, 9, 2)]
        assert StressAnalysisService.calculate_average_stress_level_by_day_type(assessments, True) == 8
        assert StressAnalysisService.calculate_average_stress_level_by_day_type(assessments, False) == 2


class TestInsights:

    def test_insights_cover_level_trend_trigger_peak_and_day_type(self):
        assessments = [_at(2024, 1, 1, 9, 8), _at(2024, 1, 6, 9, 2)]
        insights = StressAnalysisService.generate_insights(
            assessments,
            average_stress_level=7.5,
            stress_trend=WORSENING,
            common_triggers=[{"trigger": "work", "count": 5}, {"trigger": "sleep", "count": 1}],
            common_symptoms=[],
            peak_stress_times=[{"time_of_day": "9:00 AM"}],
        )
        assert insights[0].startswith("Your average stress level is high")
        assert "increasing over time" in insights[1]
        assert insights[2].startswith('"work" is your most common stress trigger')
        assert "much more frequently" in insights[3]
        assert "peak around 9:00 AM" in insights[4]
        assert "higher on weekdays" in insights[5]

    def test_two_comparable_triggers_are_both_named(self):
        insights = StressAnalysisService.generate_insights(
            [], 2, STABLE, [{"trigger": "work", "count": 3}, {"trigger": "sleep", "count": 2}], [], []
        )
        assert 'Both "work" and "sleep"' in insights[-1]
        assert insights[0].startswith("Your stress levels are generally low")


class TestDatabaseAnalysis:

    @pytest.mark.asyncio
    async def test_empty_window_reports_no_data(self):
        with patch(f"{MODULE}.stress_assessments_collection") as collection:
            collection.find.return_value = make_cursor([])
            result = await StressAnalysisService.analyze_stress_data("user-1")

        assert result["average_stress_level"] == 0
        assert result["stress_trend"] == INSUFFICIENT_DATA
        assert result["insights"] == ["No stress data available for the specified period."]
        query = collection.find.call_args.args[0]
        assert query["user_id"] == "user-1"
        assert set(query["timestamp"]) == {"$gte", "$lte"}

    @pytest.mark.asyncio
    async def test_analysis_of_stored_assessments(self):
        docs = [_at(2024, 1, d, 9, s, ["work"]) for d, s in zip(range(1, 6), [3, 4, 5, 6, 7])]
        with patch(f"{MODULE}.stress_assessments_collection") as collection:
            collection.find.return_value = make_cursor(docs)
            result = await StressAnalysisService.analyze_stress_data("user-1")

        assert result["average_stress_level"] == 5.0
        assert result["stress_trend"] == WORSENING
        assert result["common_triggers"] == [{"trigger": "work", "count": 5}]

    @pytest.mark.asyncio
    async def test_trigger_correlation_needs_five_assessments(self):
        with patch(f"{MODULE}.stress_assessments_collection") as collection:
            collection.find.return_value = make_cursor([{"score": 5, "triggers": ["work"]}] * 4)
            assert await StressAnalysisService.identify_stress_triggers("user-1") == []

    @pytest.mark.asyncio
    async def test_trigger_correlation_ranks_by_average_score(self):
        docs = [
            {"score": 8, "triggers": ["work"]},
            {"score": 9, "triggers": ["work", "traffic"]},
            {"score": 3, "triggers": ["sleep"]},
            {"score": 4, "triggers": ["sleep"]},
            {"score": 5, "triggers": ["noise"]},
        ]
        with patch(f"{MODULE}.stress_assessments_collection") as collection:
            collection.find.return_value = make_cursor(docs)
            result = await StressAnalysisService.identify_stress_triggers("user-1")

        assert result == [
            {"trigger": "work", "average_stress_level": 8.5, "occurrences": 2},
            {"trigger": "sleep", "average_stress_level": 3.5, "occurrences": 2},
        ]
