# meditation_api/routes/stress.py
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..controllers.stress_controller import (
    submit_assessment,
    get_history,
    get_analysis,
    get_triggers,
    get_analytics,
    get_patterns,
    get_peak_hours,
    get_recommendations,
)
from ..schemas.stress_schema import StressAssessmentCreate
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/stress", tags=["Stress"])


@router.post("/assessments", status_code=201, summary="Submit a stress assessment")
async def post_assessment(payload: StressAssessmentCreate, current_user: dict = Depends(get_current_user)):
    return await submit_assessment(current_user, payload)

@router.get("/assessments", summary="Latest stress assessments")
async def get_assessments(limit: int = Query(30, ge=1, le=100), current_user: dict = Depends(get_current_user)):
    return await get_history(current_user, limit)

@router.get("/analysis", summary="Trend, triggers, peak times and insights")
async def analysis(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
):
    return await get_analysis(current_user, start_date, end_date)

@router.get("/triggers", summary="Triggers ranked by average stress")
async def triggers(limit: int = Query(5, ge=1, le=20), current_user: dict = Depends(get_current_user)):
    return await get_triggers(current_user, limit)

@router.get("/analytics", summary="Average, trend and peak times over recent history")
async def analytics(current_user: dict = Depends(get_current_user)):
    return await get_analytics(current_user)

@router.get("/patterns", summary="Weekday and time-of-day patterns")
async def patterns(current_user: dict = Depends(get_current_user)):
    return await get_patterns(current_user)

@router.get("/peak-hours", summary="Hours with the highest stress")
async def peak_hours(current_user: dict = Depends(get_current_user)):
    return await get_peak_hours(current_user)

@router.get("/recommendations", summary="Stress relief techniques for the current level")
async def recommendations(level: Optional[str] = Query(None), current_user: dict = Depends(get_current_user)):
    return await get_recommendations(current_user, level)
