"""CSV generation and download responses."""

import csv
import io
import json
from dataclasses import asdict, fields, is_dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

from starlette.responses import Response

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def humanize(column: str) -> str:
    """`created_at` -> `Created at`; a trailing `_id` is dropped."""
    text = column[:-3] if column.endswith("_id") else column
    text = text.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def detect_columns(record: Any) -> list[str]:
    """Columns of a sample record: mapping keys, dataclass or pydantic fields, public attrs."""
    if isinstance(record, Mapping):
        return [str(k) for k in record.keys()]
    if is_dataclass(record) and not isinstance(record, type):
        return [f.name for f in fields(record)]
    if hasattr(record, "model_dump"):
        return list(record.model_dump().keys())
    if hasattr(record, "to_dict"):
        return list(record.to_dict().keys())
    if hasattr(record, "__dict__"):
        return [k for k in vars(record) if not k.startswith("_")]
    return []


def extract_value(record: Any, column: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(column)
    return getattr(record, column, None)


def format_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    if is_dataclass(value) and not isinstance(value, type):
        return json.dumps(asdict(value), default=str)
    return "" if value is None else value


def generate_csv(
    collection: Iterable[Any] | None,
    columns: Sequence[str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> str:
    """Serialize records to CSV text.

    Args:
        collection: Records (mappings, dataclasses, pydantic models, objects).
        columns: Columns to export; detected from the first record if omitted.
        headers: Column -> header label overrides.

    Returns:
        CSV text with a header row, or "" for an empty collection.
    """
    records = list(collection or [])
    if not records:
        return ""

    cols = list(columns) if columns else detect_columns(records[0])
    labels = headers or {}

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([labels.get(col) or humanize(col) for col in cols])
    for record in records:
        writer.writerow([format_value(extract_value(record, col)) for col in cols])
    return buffer.getvalue()


def send_csv(
    collection: Iterable[Any] | None,
    filename: str = "export.csv",
    columns: Sequence[str] | None = None,
    headers: Mapping[str, str] | None = None,
    status_code: int = 200,
) -> Response:
    """CSV attachment response."""
    return Response(
        generate_csv(collection, columns=columns, headers=headers),
        status_code=status_code,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
