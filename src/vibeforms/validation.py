from __future__ import annotations

import math
import re
from datetime import date
from pathlib import PurePosixPath
from typing import Any, Callable

from vibeforms.fields import (
    FieldType,
    field_type_of,
    is_answerable,
    is_multi_value,
    option_values,
)
from vibeforms.utils import parse_bool

MISSING = "missing"
WRONG_TYPE = "wrong_type"
TOO_LARGE = "too_large"
UNSUPPORTED_TYPE = "unsupported_type"
OUT_OF_RANGE = "out_of_range"
PATTERN_MISMATCH = "pattern_mismatch"

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CheckResult = tuple[Any, str | None]


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return all(is_empty(item) for item in value)
    return False


def matches_accept(accept: str, filename: str, content_type: str = "") -> bool:
    """Check an upload against an ``accept`` list such as ``.pdf,.png,image/*``."""
    patterns = [item.strip().lower() for item in (accept or "").split(",") if item.strip()]
    if not patterns or "*" in patterns or "*/*" in patterns:
        return True
    extension = PurePosixPath(filename or "").suffix.lower()
    mime = (content_type or "").lower()
    for pattern in patterns:
        if pattern.startswith("."):
            if extension == pattern:
                return True
        elif pattern.endswith("/*"):
            if mime.startswith(pattern[:-1]):
                return True
        elif "/" in pattern:
            if mime == pattern:
                return True
        elif extension == f".{pattern}":
            return True
    return False


def _parse_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _check_text(field: dict[str, Any], value: Any) -> CheckResult:
    if isinstance(value, (dict, list, bool)):
        return None, WRONG_TYPE
    return str(value), None


def _check_email(field: dict[str, Any], value: Any) -> CheckResult:
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
        return None, WRONG_TYPE
    return value.strip(), None


def _check_number(field: dict[str, Any], value: Any) -> CheckResult:
    number = _parse_number(value)
    if number is None:
        return None, WRONG_TYPE
    return number, None


def _check_date(field: dict[str, Any], value: Any) -> CheckResult:
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        return None, WRONG_TYPE
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return None, WRONG_TYPE
    return value.strip(), None


def _check_choices(field: dict[str, Any], value: Any) -> CheckResult:
    allowed = option_values(field)
    if is_multi_value(field):
        items = value if isinstance(value, list) else [value]
        if not all(isinstance(item, str) for item in items):
            return None, WRONG_TYPE
        chosen = {item for item in items if item.strip()}
        if not chosen.issubset(allowed):
            return None, WRONG_TYPE
        return [option for option in allowed if option in chosen], None
    if not isinstance(value, str) or value not in allowed:
        return None, WRONG_TYPE
    return value, None


def _check_checkbox(field: dict[str, Any], value: Any) -> CheckResult:
    if field.get("options"):
        return _check_choices(field, value)
    return parse_bool(value), None


def _check_file(field: dict[str, Any], value: Any) -> CheckResult:
    items = value if isinstance(value, list) else [value]
    if not all(isinstance(item, dict) for item in items):
        return None, WRONG_TYPE
    accept = field.get("accept") or ""
    max_size = field.get("max_size")
    for item in items:
        if not matches_accept(accept, item.get("name", ""), item.get("content_type", "")):
            return None, UNSUPPORTED_TYPE
    for item in items:
        size = item.get("size") or 0
        if max_size is not None and size > max_size:
            return None, TOO_LARGE
    return items, None


TYPE_CHECKS: dict[FieldType, Callable[[dict[str, Any], Any], CheckResult]] = {
    FieldType.TEXT: _check_text,
    FieldType.TEXTAREA: _check_text,
    FieldType.EMAIL: _check_email,
    FieldType.NUMBER: _check_number,
    FieldType.DATE: _check_date,
    FieldType.SELECT: _check_choices,
    FieldType.RADIO: _check_choices,
    FieldType.CHECKBOX: _check_checkbox,
    FieldType.FILE: _check_file,
}


def _check_constraints(field: dict[str, Any], value: Any) -> str | None:
    rules = field.get("validation") or {}
    if not rules:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if rules.get("min") is not None and value < rules["min"]:
            return OUT_OF_RANGE
        if rules.get("max") is not None and value > rules["max"]:
            return OUT_OF_RANGE
    pattern = rules.get("pattern")
    if pattern and isinstance(value, str) and not re.fullmatch(pattern, value):
        return PATTERN_MISMATCH
    return None


def _prepare(field: dict[str, Any], value: Any) -> Any:
    if field_type_of(field) == FieldType.CHECKBOX and not field.get("options"):
        return parse_bool(value) if value is not None else None
    if is_multi_value(field):
        if value is None:
            return []
        items = value if isinstance(value, list) else [value]
        return [item for item in items if not is_empty(item)]
    return value


def validate_submission(
    visible: list[dict[str, Any]], answers: dict[str, Any]
) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Validate answers for the visible fields.

    Returns the cleaned answers (only visible answerable fields with a
    non-empty answer) and every violation found, one per offending field.
    Answers for fields outside ``visible`` are dropped without a check.
    """
    cleaned: dict[str, Any] = {}
    violations: list[dict[str, str]] = []

    for field in visible:
        if not is_answerable(field):
            continue
        field_type = field_type_of(field)
        value = _prepare(field, answers.get(field["id"]))
        if is_empty(value):
            if field.get("required"):
                violations.append({"field": field["id"], "reason": MISSING})
            continue

        check = TYPE_CHECKS.get(field_type, _check_text)
        normalized, reason = check(field, value)
        if reason is None:
            reason = _check_constraints(field, normalized)
        if reason is not None:
            violations.append({"field": field["id"], "reason": reason})
            continue
        cleaned[field["id"]] = normalized

    return cleaned, violations
