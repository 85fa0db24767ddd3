from __future__ import annotations

import csv
import io
from typing import Any, Callable

from vibeforms.fields import FieldType, answerable_fields, field_type_of
from vibeforms.utils import to_iso

TIMESTAMP_HEADER = "Submitted At"

# Both historical list delimiters stay available as named export contexts.
LIST_SEPARATORS = {"submissions": "; ", "responses": ", "}
DEFAULT_CONTEXT = "submissions"


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _default_cell(value: Any, separator: str) -> str:
    if isinstance(value, list):
        return separator.join(_scalar_text(item) for item in value if item is not None)
    return _scalar_text(value)


def _file_cell(value: Any, separator: str) -> str:
    if isinstance(value, list):
        return separator.join(str(item) for item in value)
    return _scalar_text(value)


CELL_FORMATTERS: dict[FieldType, Callable[[Any, str], str]] = {
    FieldType.FILE: _file_cell,
}


def cell_text(field: dict[str, Any], value: Any, separator: str) -> str:
    formatter = CELL_FORMATTERS.get(field_type_of(field), _default_cell)
    return formatter(value, separator)


def csv_headers_and_rows(
    fields: list[dict[str, Any]],
    submissions: list[dict[str, Any]],
    list_separator: str = LIST_SEPARATORS[DEFAULT_CONTEXT],
) -> tuple[list[str], list[list[str]]]:
    columns = answerable_fields(fields)
    headers = [TIMESTAMP_HEADER] + [field.get("label") or field["id"] for field in columns]
    rows: list[list[str]] = []
    for submission in submissions:
        data = submission.get("data_json", {})
        row = [to_iso(submission["created_at"])]
        for field in columns:
            row.append(cell_text(field, data.get(field["id"]), list_separator))
        rows.append(row)
    return headers, rows


def render_csv(headers: list[str], rows: list[list[str]]) -> str:
    """Cells holding a comma, quote or newline are quoted with quotes doubled."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def export_csv(
    fields: list[dict[str, Any]],
    submissions: list[dict[str, Any]],
    context: str = DEFAULT_CONTEXT,
) -> str:
    if context not in LIST_SEPARATORS:
        raise ValueError(f"unknown export context: {context}")
    headers, rows = csv_headers_and_rows(fields, submissions, LIST_SEPARATORS[context])
    return render_csv(headers, rows)
