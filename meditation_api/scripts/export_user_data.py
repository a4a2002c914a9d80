# meditation_api/scripts/export_user_data.py
"""
Write one user's data to CSV files under EXPORT_DIR.

    python -m meditation_api.scripts.export_user_data <user_id> [--start 2024-01-01] [--end 2024-02-01]
"""
import argparse
import asyncio
import os

from meditation_api.config import EXPORT_DIR
from meditation_api.services.export_service import (
    ExportService,
    ACHIEVEMENT_HEADERS,
    MEDITATION_HEADERS,
    STRESS_HEADERS,
)
from meditation_api.utils.csv_writer import write_csv
from meditation_api.utils.datetime_utils import parse_date_param


async def export_user(user_id: str, output_dir: str, start=None, end=None) -> dict:
    achievements = await ExportService.get_user_achievements(user_id, "json", start, end)
    meditations = await ExportService.get_user_meditations(user_id, "json", start, end)
    for session in meditations:
        mood = session.get("mood") or {}
        session["mood_before"] = mood.get("before")
        session["mood_after"] = mood.get("after")
    assessments = await ExportService.get_user_stress_assessments(user_id, "json", start, end)

    base = os.path.join(output_dir, user_id)
    return {
        "achievements": write_csv(achievements, ACHIEVEMENT_HEADERS, os.path.join(base, "achievements.csv")),
        "meditations": write_csv(meditations, MEDITATION_HEADERS, os.path.join(base, "meditations.csv")),
        "stress_assessments": write_csv(assessments, STRESS_HEADERS, os.path.join(base, "stress_assessments.csv")),
    }


def parse_args():
    parser = argparse.ArgumentParser(description="Export a user's data to CSV")
    parser.add_argument("user_id")
    parser.add_argument("--out", default=EXPORT_DIR, help="output directory")
    parser.add_argument("--start", help="ISO start date")
    parser.add_argument("--end", help="ISO end date")
    return parser.parse_args()


async def main():
    args = parse_args()
    counts = await export_user(args.user_id, args.out, parse_date_param(args.start), parse_date_param(args.end))
    print(counts)

if __name__ == "__main__":
    asyncio.run(main())
