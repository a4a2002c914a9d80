# meditation_api/controllers/stress_controller.py
from typing import Optional

from ..schemas.stress_schema import StressAssessmentCreate
from ..services.stress_analysis_service import StressAnalysisService
from ..services.stress_management_service import StressManagementService
from ..utils.datetime_utils import parse_date_param
from ..errors import ValidationError


def _uid(current_user: dict) -> str:
    return str(current_user["_id"])


def _date(value: Optional[str], name: str):
    parsed = parse_date_param(value)
    if value and parsed is None:
        raise ValidationError(f"Invalid {name}")
    return parsed


async def submit_assessment(current_user: dict, payload: StressAssessmentCreate):
    return await StressManagementService.assess_stress_level(_uid(current_user), payload.model_dump())


async def get_history(current_user: dict, limit: int = 30):
    return {"assessments": await StressManagementService.get_stress_history(_uid(current_user), limit)}


async def get_analysis(current_user: dict, start_date: Optional[str] = None, end_date: Optional[str] = None):
    return await StressAnalysisService.analyze_stress_data(
        _uid(current_user), _date(start_date, "start_date"), _date(end_date, "end_date")
    )


async def get_triggers(current_user: dict, limit: int = 5):
    return {"triggers": await StressAnalysisService.identify_stress_triggers(_uid(current_user), limit)}


async def get_analytics(current_user: dict):
    return await StressManagementService.get_stress_analytics(_uid(current_user))


async def get_patterns(current_user: dict):
    return await StressManagementService.get_stress_patterns(_uid(current_user))


async def get_peak_hours(current_user: dict):
    return {"peak_hours": await StressManagementService.get_peak_stress_hours(_uid(current_user))}


async def get_recommendations(current_user: dict, level: Optional[str] = None):
    return await StressManagementService.get_recommendations(_uid(current_user), level)
