from __future__ import annotations

import math
from typing import Any, Callable

from vibeforms.errors import ConditionalCycleError


def _strict_equals(left: Any, right: Any) -> bool:
    # bool is an int subclass; keep True and 1 apart.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if type(left) is not type(right) and not (
        isinstance(left, (int, float)) and isinstance(right, (int, float))
    ):
        return False
    return left == right


def _to_text(value: Any) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return "true"
    return str(value)


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _equals(answer: Any, expected: Any) -> bool:
    return _strict_equals(answer, expected)


def _not_equals(answer: Any, expected: Any) -> bool:
    return not _strict_equals(answer, expected)


def _contains(answer: Any, expected: Any) -> bool:
    needle = _to_text(expected)
    if isinstance(answer, list):
        return any(needle in _to_text(item) for item in answer)
    return needle in _to_text(answer)


def _compare(predicate: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def check(answer: Any, expected: Any) -> bool:
        left = _to_number(answer)
        right = _to_number(expected)
        if left is None or right is None:
            return False
        return predicate(left, right)

    return check


OPERATOR_CHECKS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": _equals,
    "not_equals": _not_equals,
    "contains": _contains,
    "greater_than": _compare(lambda left, right: left > right),
    "less_than": _compare(lambda left, right: left < right),
}


def evaluate_condition(rule: dict[str, Any], answers: dict[str, Any]) -> bool:
    """Return whether ``rule`` lets its field show, ignoring the controller's own visibility."""
    answer = answers.get(rule["field_id"], "")
    check = OPERATOR_CHECKS.get(rule.get("operator", ""))
    condition_met = check(answer, rule.get("value", "")) if check else False
    if rule.get("action", "show") == "show":
        return condition_met
    return not condition_met


def resolve_visibility(
    fields: list[dict[str, Any]], answers: dict[str, Any]
) -> dict[str, bool]:
    by_id = {field["id"]: field for field in fields}
    resolved: dict[str, bool] = {}

    for field in fields:
        # Climb the controller chain to the first settled field, then settle it top-down.
        path: list[str] = []
        on_path: set[str] = set()
        current = field["id"]
        while current in by_id and current not in resolved:
            if current in on_path:
                raise ConditionalCycleError(path[path.index(current):] + [current])
            path.append(current)
            on_path.add(current)
            rule = by_id[current].get("conditional")
            if not rule:
                break
            current = rule["field_id"]

        for field_id in reversed(path):
            rule = by_id[field_id].get("conditional")
            if not rule:
                resolved[field_id] = True
                continue
            controller_visible = resolved.get(rule["field_id"], True)
            resolved[field_id] = controller_visible and evaluate_condition(rule, answers)
    return resolved


def visible_fields(
    fields: list[dict[str, Any]], answers: dict[str, Any]
) -> list[dict[str, Any]]:
    """Ordered subset of ``fields`` shown for the current, possibly partial, answers."""
    visibility = resolve_visibility(fields, answers)
    return [field for field in fields if visibility[field["id"]]]
