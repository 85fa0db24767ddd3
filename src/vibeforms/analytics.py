from __future__ import annotations

from collections import Counter
from typing import Any, Callable

from vibeforms.fields import FieldType, answerable_fields, field_type_of
from vibeforms.utils import ensure_aware
from vibeforms.validation import is_empty


def _count_choices(values: list[Any]) -> dict[str, Any]:
    counts: Counter[str] = Counter()
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, bool):
                counts["Yes" if item else "No"] += 1
            else:
                counts[str(item)] += 1
    return {"counts": dict(counts)}


def _average(values: list[Any]) -> dict[str, Any]:
    numbers: list[float] = []
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            numbers.append(float(value))
        except (TypeError, ValueError):
            continue
    average = sum(numbers) / len(numbers) if numbers else 0.0
    return {"average": round(average, 1)}


SUMMARIZERS: dict[FieldType, Callable[[list[Any]], dict[str, Any]]] = {
    FieldType.SELECT: _count_choices,
    FieldType.RADIO: _count_choices,
    FieldType.CHECKBOX: _count_choices,
    FieldType.NUMBER: _average,
}


def responses_by_day(submissions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    days = Counter(
        ensure_aware(item["created_at"]).date().isoformat() for item in submissions
    )
    return [{"date": day, "count": days[day]} for day in sorted(days)]


def build_analytics(
    fields: list[dict[str, Any]], submissions: list[dict[str, Any]]
) -> dict[str, Any]:
    total = len(submissions)
    summaries: list[dict[str, Any]] = []
    for field in answerable_fields(fields):
        values = [
            item.get("data_json", {}).get(field["id"])
            for item in submissions
            if not is_empty(item.get("data_json", {}).get(field["id"]))
        ]
        summary: dict[str, Any] = {
            "field_id": field["id"],
            "field_label": field.get("label") or field["id"],
            "field_type": field["type"],
            "fill_rate": round(len(values) / total * 100) if total else 0,
        }
        summarize = SUMMARIZERS.get(field_type_of(field))
        if summarize:
            summary.update(summarize(values))
        summaries.append(summary)
    return {
        "total_responses": total,
        "responses_by_day": responses_by_day(submissions),
        "field_summaries": summaries,
    }
