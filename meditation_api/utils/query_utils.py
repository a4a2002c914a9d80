# meditation_api/utils/query_utils.py
from datetime import datetime
from math import ceil
from typing import Dict, Optional, Tuple

from bson import ObjectId

from ..errors import ValidationError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def as_object_id(value: str, label: str = "ID") -> ObjectId:
    if not value or not ObjectId.is_valid(str(value)):
        raise ValidationError(f"Invalid {label} format")
    return ObjectId(str(value))


def pagination_params(page: Optional[int] = None, limit: Optional[int] = None) -> Tuple[int, int, int]:
    """Normalize page/limit and return (page, limit, skip)."""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    limit = min(limit, MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def pagination_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": ceil(total / limit) if limit else 0,
    }


def date_range_query(
    field: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, dict]:
    """Build ``{field: {"$gte": start, "$lte": end}}``; empty when neither bound is set."""
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be before end_date")
    bounds: dict = {}
    if start_date:
        bounds["$gte"] = start_date
    if end_date:
        bounds["$lte"] = end_date
    return {field: bounds} if bounds else {}
