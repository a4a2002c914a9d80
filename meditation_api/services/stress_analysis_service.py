# meditation_api/services/stress_analysis_service.py
"""
Stress trend and insight generation.

All helpers are static and work on plain assessment dicts as stored in
Mongo (``score``, ``timestamp``, ``triggers``, ``symptoms``), so they can be
reused by other services and tested without a database. Only
``analyze_stress_data`` and ``identify_stress_triggers`` touch the DB.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from math import sqrt
from typing import Any, Dict, Iterable, List, Optional

from ..db.mongo import stress_assessments_collection
from ..utils.datetime_utils import now_utc, to_utc_aware
from ..utils.query_utils import date_range_query

logger = logging.getLogger(__name__)

IMPROVING = "IMPROVING"
WORSENING = "WORSENING"
STABLE = "STABLE"
FLUCTUATING = "FLUCTUATING"
INSUFFICIENT_DATA = "INSUFFICIENT_DATA"

FLUCTUATION_THRESHOLD = 2.5
TREND_THRESHOLD = 1.0
DAY_TYPE_GAP = 1.5
DEFAULT_WINDOW_DAYS = 30


def _score(assessment: dict) -> float:
    return float(assessment.get("score") or 0)


def _utc(ts: Any) -> Optional[datetime]:
    if not isinstance(ts, datetime):
        return None
    return to_utc_aware(ts).astimezone(timezone.utc)


class StressAnalysisService:

    @staticmethod
    def calculate_average_stress_level(assessments: List[dict]) -> float:
        if not assessments:
            return 0
        return round(sum(_score(a) for a in assessments) / len(assessments), 1)

    @staticmethod
    def calculate_standard_deviation(values: Iterable[float]) -> float:
        values = list(values)
        if not values:
            return 0.0
        mean = sum(values) / len(values)
        return sqrt(sum((v - mean) ** 2 for v in values) / len(values))

    @classmethod
    def analyze_stress_trend(cls, assessments: List[dict]) -> str:
        """Classify a chronological series of assessments.

        The series is cut in thirds (the last third takes the remainder); a
        high spread wins over direction, otherwise the first and last thirds
        are compared.
        """
        if len(assessments) < 3:
            return INSUFFICIENT_DATA

        size = len(assessments) // 3
        first_avg = cls.calculate_average_stress_level(assessments[:size])
        last_avg = cls.calculate_average_stress_level(assessments[size * 2:])

        if cls.calculate_standard_deviation(_score(a) for a in assessments) > FLUCTUATION_THRESHOLD:
            return FLUCTUATING

        # both averages carry one decimal
        difference = round(last_avg - first_avg, 1)
        if difference <= -TREND_THRESHOLD:
            return IMPROVING
        if difference >= TREND_THRESHOLD:
            return WORSENING
        return STABLE

    @staticmethod
    def _top_counts(assessments: List[dict], field: str, key: str, limit: int) -> List[Dict[str, Any]]:
        counts: Counter = Counter()
        for assessment in assessments:
            values = assessment.get(field)
            if isinstance(values, list):
                counts.update(values)
        return [{key: value, "count": count} for value, count in counts.most_common(limit)]

    @classmethod
    def identify_common_triggers(cls, assessments: List[dict], limit: int = 5) -> List[Dict[str, Any]]:
        return cls._top_counts(assessments, "triggers", "trigger", limit)

    @classmethod
    def identify_common_symptoms(cls, assessments: List[dict], limit: int = 5) -> List[Dict[str, Any]]:
        return cls._top_counts(assessments, "symptoms", "symptom", limit)

    @staticmethod
    def format_hour_to_time_of_day(hour: int) -> str:
        period = "PM" if hour >= 12 else "AM"
        display = hour % 12 or 12
        return f"{display}:00 {period}"

    @classmethod
    def identify_peak_stress_times(cls, assessments: List[dict], limit: int = 3) -> List[Dict[str, Any]]:
        """Hours of the day (UTC) with the highest average score."""
        buckets: Dict[int, List[float]] = {}
        for assessment in assessments:
            ts = _utc(assessment.get("timestamp"))
            if ts is None or assessment.get("score") is None:
                continue
            buckets.setdefault(ts.hour, []).append(_score(assessment))

        hourly = [
            {
                "hour": hour,
                "average_stress": round(sum(scores) / len(scores), 1),
                "assessment_count": len(scores),
            }
            for hour, scores in buckets.items()
        ]
        hourly.sort(key=lambda item: item["average_stress"], reverse=True)
        return [
            {**item, "time_of_day": cls.format_hour_to_time_of_day(item["hour"])}
            for item in hourly[:limit]
        ]

    @classmethod
    def calculate_average_stress_level_by_day_type(cls, assessments: List[dict], is_weekday: bool) -> float:
        selected = []
        for assessment in assessments:
            ts = _utc(assessment.get("timestamp"))
            if ts is None:
                continue
            weekend = ts.weekday() >= 5
            if weekend != is_weekday:
                selected.append(assessment)
        return cls.calculate_average_stress_level(selected)

    @classmethod
    def generate_insights(
        cls,
        assessments: List[dict],
        average_stress_level: float,
        stress_trend: str,
        common_triggers: List[dict],
        common_symptoms: List[dict],
        peak_stress_times: List[dict],
    ) -> List[str]:
        insights: List[str] = []

        if average_stress_level >= 7:
            insights.append(
                "Your average stress level is high. Consider incorporating more stress management "
                "techniques into your daily routine."
            )
        elif average_stress_level >= 4:
            insights.append("Your stress levels are moderate. Regular mindfulness practice can help maintain balance.")
        else:
            insights.append("Your stress levels are generally low. Keep up your current stress management practices.")

        if stress_trend == IMPROVING:
            insights.append(
                "Your stress levels have been improving over time. Your current strategies appear to be working well."
            )
        elif stress_trend == WORSENING:
            insights.append(
                "Your stress levels have been increasing over time. Consider reviewing and adjusting your "
                "stress management approach."
            )
        elif stress_trend == FLUCTUATING:
            insights.append(
                "Your stress levels fluctuate significantly. Try to identify patterns and prepare for "
                "high-stress periods."
            )

        if common_triggers:
            top = common_triggers[0]
            insights.append(
                f'"{top["trigger"]}" is your most common stress trigger. Consider developing specific '
                "strategies to address this source of stress."
            )
            if len(common_triggers) > 1:
                second = common_triggers[1]
                if top["count"] > second["count"] * 2:
                    insights.append(
                        f'"{top["trigger"]}" triggers stress much more frequently than other factors. Focusing '
                        "on this area could significantly reduce your overall stress."
                    )
                else:
                    insights.append(
                        f'Both "{top["trigger"]}" and "{second["trigger"]}" are significant sources of stress for you.'
                    )

        if peak_stress_times:
            insights.append(
                f"Your stress tends to peak around {peak_stress_times[0]['time_of_day']}. Consider scheduling "
                "stress management activities before this time."
            )

        weekday = cls.calculate_average_stress_level_by_day_type(assessments, True)
        weekend = cls.calculate_average_stress_level_by_day_type(assessments, False)
        if weekday > weekend + DAY_TYPE_GAP:
            insights.append(
                "Your stress levels are significantly higher on weekdays compared to weekends. "
                "Work-related stress may be a key factor."
            )
        elif weekend > weekday + DAY_TYPE_GAP:
            insights.append(
                "Your stress levels are higher on weekends than weekdays. Consider examining your weekend "
                "activities and responsibilities."
            )

        return insights

    # ------------------------------------------------------------------
    # DB-backed analysis
    # ------------------------------------------------------------------
    @classmethod
    async def analyze_stress_data(
        cls,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        end = end_date or now_utc()
        start = start_date or end - timedelta(days=DEFAULT_WINDOW_DAYS)

        query = {"user_id": str(user_id), **date_range_query("timestamp", start, end)}
        cursor = stress_assessments_collection.find(query).sort("timestamp", 1)
        assessments = [doc async for doc in cursor]
        logger.debug("Analyzing %d assessments for user %s", len(assessments), user_id)

        if not assessments:
            return {
                "average_stress_level": 0,
                "stress_trend": INSUFFICIENT_DATA,
                "common_triggers": [],
                "common_symptoms": [],
                "peak_stress_times": [],
                "insights": ["No stress data available for the specified period."],
            }

        average = cls.calculate_average_stress_level(assessments)
        trend = cls.analyze_stress_trend(assessments)
        triggers = cls.identify_common_triggers(assessments)
        symptoms = cls.identify_common_symptoms(assessments)
        peaks = cls.identify_peak_stress_times(assessments)
        return {
            "average_stress_level": average,
            "stress_trend": trend,
            "common_triggers": triggers,
            "common_symptoms": symptoms,
            "peak_stress_times": peaks,
            "insights": cls.generate_insights(assessments, average, trend, triggers, symptoms, peaks),
        }

    @classmethod
    async def identify_stress_triggers(cls, user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Average score of assessments mentioning each trigger, highest first."""
        assessments = [doc async for doc in stress_assessments_collection.find({"user_id": str(user_id)})]
        if len(assessments) < 5:
            return []

        scores: Dict[str, List[float]] = {}
        for assessment in assessments:
            for trigger in set(assessment.get("triggers") or []):
                scores.setdefault(trigger, []).append(_score(assessment))

        analysis = [
            {
                "trigger": trigger,
                "average_stress_level": round(sum(values) / len(values), 1),
                "occurrences": len(values),
            }
            for trigger, values in scores.items()
            if len(values) >= 2
        ]
        analysis.sort(key=lambda item: item["average_stress_level"], reverse=True)
        return analysis[:limit]
