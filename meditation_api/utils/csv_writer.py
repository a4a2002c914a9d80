# meditation_api/utils/csv_writer.py
import csv
import io
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return value


def _write_rows(handle, data: Iterable[Dict[str, Any]], headers: List[str]) -> int:
    writer = csv.DictWriter(handle, fieldnames=headers, extrasaction="ignore")
    writer.writeheader()
    count = 0
    for record in data:
        writer.writerow({h: _cell(record.get(h)) for h in headers})
        count += 1
    return count


def render_csv(data: Iterable[Dict[str, Any]], headers: List[str]) -> str:
    """Render records as CSV text, columns in ``headers`` order."""
    buf = io.StringIO()
    _write_rows(buf, data, headers)
    return buf.getvalue()


def write_csv(data: Iterable[Dict[str, Any]], headers: List[str], output_path: str) -> int:
    """Write records to ``output_path`` (parent dirs created). Returns the row count."""
    if not headers:
        raise ValueError("headers must not be empty")
    parent = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(parent, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as fh:
        return _write_rows(fh, data, headers)
