# meditation_api/controllers/export_controller.py
from typing import Optional

from fastapi.responses import Response

from ..errors import ValidationError
from ..services.export_service import ExportService
from ..utils.datetime_utils import now_utc, parse_date_param

_EXPORTERS = {
    "achievements": ExportService.get_user_achievements,
    "meditations": ExportService.get_user_meditations,
    "stress-assessments": ExportService.get_user_stress_assessments,
    "all": ExportService.get_user_data,
}


def _date(value: Optional[str], name: str):
    parsed = parse_date_param(value)
    if value and parsed is None:
        raise ValidationError(f"Invalid {name}")
    return parsed


async def export_user_data(
    current_user: dict,
    kind: str,
    format: str = "json",
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    exporter = _EXPORTERS.get(kind)
    if exporter is None:
        raise ValidationError(f"Unknown export type: {kind}")

    fmt = (format or "json").lower()
    result = await exporter(
        str(current_user["_id"]), fmt, _date(start_date, "start_date"), _date(end_date, "end_date")
    )
    if fmt == "csv":
        filename = f"{kind}-{now_utc().strftime('%Y%m%d')}.csv"
        return Response(
            content=result,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return {"data": result}
