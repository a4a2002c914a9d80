import csv
from datetime import datetime, timezone

import pytest

from meditation_api.utils.csv_writer import render_csv, write_csv

HEADERS = ["title", "duration", "tags", "end_time"]


def _records():
    return [
        {"title": "Morning calm", "duration": 600, "tags": ["morning", "breath"], "end_time": None, "extra": "x"},
        {"title": "Evening, wind down", "duration": 900, "tags": [], "end_time": datetime(2024, 1, 1, tzinfo=timezone.utc)},
        {"title": 'Quote "test"', "duration": 120},
    ]


def test_written_rows_read_back_in_header_order(tmp_path):
    path = tmp_path / "nested" / "sessions.csv"
    count = write_csv(_records(), HEADERS, str(path))

    with open(path, newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        rows = list(reader)

    assert count == 3
    assert reader.fieldnames == HEADERS
    assert len(rows) == 3
    assert rows[0]["tags"] == "morning, breath"
    assert rows[0]["end_time"] == ""
    assert rows[1]["title"] == "Evening, wind down"
    assert rows[1]["end_time"] == "2024-01-01T00:00:00+00:00"
    assert rows[2]["title"] == 'Quote "test"'


def test_empty_data_writes_only_header(tmp_path):
    path = tmp_path / "empty.csv"
    assert write_csv([], HEADERS, str(path)) == 0
    assert path.read_text(encoding="utf-8").strip() == ",".join(HEADERS)


def test_headers_are_required(tmp_path):
    with pytest.raises(ValueError):
        write_csv(_records(), [], str(tmp_path / "x.csv"))


def test_render_matches_file_output(tmp_path):
    path = tmp_path / "same.csv"
    write_csv(_records(), HEADERS, str(path))
    assert render_csv(_records(), HEADERS) == path.read_bytes().decode("utf-8")
