# meditation_api/routes/export.py
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query

from ..controllers.export_controller import export_user_data
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/export", tags=["Export"])

ExportKind = Literal["achievements", "meditations", "stress-assessments", "all"]


@router.get("/{kind}", summary="Export my data as JSON or CSV")
async def get_export(
    kind: ExportKind,
    format: Literal["json", "csv"] = Query("json"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
):
    return await export_user_data(current_user, kind, format, start_date, end_date)
