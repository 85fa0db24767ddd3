from __future__ import annotations

import re
from enum import Enum
from typing import Any

from jsonschema import Draft7Validator

from vibeforms.utils import generate_field_id


class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"
    FILE = "file"
    HEADING = "heading"
    PARAGRAPH = "paragraph"


ANSWERLESS_TYPES = {FieldType.HEADING, FieldType.PARAGRAPH}
OPTION_TYPES = {FieldType.SELECT, FieldType.RADIO}
OPERATORS = {"equals", "not_equals", "contains", "greater_than", "less_than"}
ACTIONS = {"show", "hide"}

# Input hint handed to public clients, one entry per field type.
INPUT_TYPES: dict[FieldType, str] = {
    FieldType.TEXT: "text",
    FieldType.EMAIL: "email",
    FieldType.NUMBER: "number",
    FieldType.TEXTAREA: "textarea",
    FieldType.SELECT: "select",
    FieldType.CHECKBOX: "checkbox",
    FieldType.RADIO: "radio",
    FieldType.DATE: "date",
    FieldType.FILE: "file",
    FieldType.HEADING: "static",
    FieldType.PARAGRAPH: "static",
}

FIELD_DEFINITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "id": {"type": "string"},
        "type": {"type": "string"},
        "label": {"type": "string"},
        "placeholder": {"type": "string"},
        "required": {"type": "boolean"},
        "multiple": {"type": "boolean"},
        "options": {
            "type": "array",
            "items": {
                "anyOf": [
                    {"type": "string"},
                    {
                        "type": "object",
                        "required": ["value"],
                        "properties": {
                            "label": {"type": "string"},
                            "value": {"type": "string"},
                        },
                    },
                ]
            },
        },
        "accept": {"type": "string"},
        "max_size": {"type": ["integer", "null"], "minimum": 0},
        "validation": {
            "type": ["object", "null"],
            "properties": {
                "min": {"type": ["number", "null"]},
                "max": {"type": ["number", "null"]},
                "pattern": {"type": ["string", "null"]},
            },
        },
        "conditional": {
            "type": ["object", "null"],
            "required": ["field_id", "operator", "action"],
            "properties": {
                "field_id": {"type": "string"},
                "operator": {"type": "string"},
                "value": {"type": ["string", "number", "boolean", "null"]},
                "action": {"type": "string"},
            },
        },
    },
}

_FIELD_VALIDATOR = Draft7Validator(FIELD_DEFINITION_SCHEMA)


def field_type_of(field: dict[str, Any]) -> FieldType | None:
    try:
        return FieldType(field.get("type"))
    except ValueError:
        return None


def is_answerable(field: dict[str, Any]) -> bool:
    return field_type_of(field) not in ANSWERLESS_TYPES


def is_multi_value(field: dict[str, Any]) -> bool:
    field_type = field_type_of(field)
    if field_type == FieldType.CHECKBOX:
        return bool(field.get("options"))
    if field_type == FieldType.SELECT:
        return bool(field.get("multiple"))
    return field_type == FieldType.FILE


def option_values(field: dict[str, Any]) -> list[str]:
    return [option["value"] for option in field.get("options") or []]


def answerable_fields(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [field for field in fields if is_answerable(field)]


def field_labels(fields: list[dict[str, Any]]) -> dict[str, str]:
    return {field["id"]: field.get("label") or field["id"] for field in fields}


def _normalize_options(raw_options: list[Any]) -> list[dict[str, str]]:
    options: list[dict[str, str]] = []
    for raw in raw_options:
        if isinstance(raw, str):
            value = raw.strip()
            label = value
        else:
            value = str(raw.get("value", "")).strip()
            label = str(raw.get("label") or value).strip()
        if value:
            options.append({"label": label, "value": value})
    return options


def _normalize_conditional(raw: dict[str, Any] | None) -> dict[str, Any] | None:
    if not raw:
        return None
    value = raw.get("value", "")
    return {
        "field_id": str(raw.get("field_id", "")).strip(),
        "operator": str(raw.get("operator", "")).strip(),
        "value": "" if value is None else value,
        "action": str(raw.get("action", "show")).strip(),
    }


def find_conditional_cycle(fields: list[dict[str, Any]]) -> list[str] | None:
    """Return the ids forming a conditional cycle, or None.

    Each field has at most one controlling field, so the dependency graph is a
    set of chains and walking each chain once is enough.
    """
    controller = {
        field["id"]: (field.get("conditional") or {}).get("field_id")
        for field in fields
    }
    finished: set[str] = set()
    for start in controller:
        if start in finished:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = start
        while current in controller and current not in finished:
            if current in on_path:
                return path[path.index(current):] + [current]
            path.append(current)
            on_path.add(current)
            current = controller[current]
        finished.update(path)
    return None


def parse_fields(raw_fields: Any) -> tuple[list[dict[str, Any]], list[str]]:
    """Normalize raw field definitions and collect every definition error."""
    if not isinstance(raw_fields, list):
        return [], ["fields must be a list"]

    errors: list[str] = []
    seen_ids: set[str] = set()
    fields: list[dict[str, Any]] = []

    for index, raw in enumerate(raw_fields, start=1):
        loc = f"field {index}"
        if not isinstance(raw, dict):
            errors.append(f"{loc}: definition must be an object")
            continue
        schema_errors = sorted(_FIELD_VALIDATOR.iter_errors(raw), key=lambda err: list(err.path))
        if schema_errors:
            for error in schema_errors:
                path = ".".join(str(part) for part in error.path)
                errors.append(f"{loc}{'.' + path if path else ''}: {error.message}")
            continue

        field_id = str(raw.get("id", "")).strip()
        if not field_id:
            field_id = generate_field_id(seen_ids)
        if field_id in seen_ids:
            errors.append(f"{loc}: duplicate id ({field_id})")
        seen_ids.add(field_id)

        field_type = field_type_of(raw)
        if field_type is None:
            errors.append(f"{loc}: unknown type ({raw.get('type')})")
            continue

        label = str(raw.get("label", "")).strip()
        if not label and field_type not in ANSWERLESS_TYPES:
            label = field_id

        field: dict[str, Any] = {
            "id": field_id,
            "type": field_type.value,
            "label": label,
            "required": bool(raw.get("required")) and field_type not in ANSWERLESS_TYPES,
        }
        if raw.get("placeholder"):
            field["placeholder"] = str(raw["placeholder"])

        if field_type in OPTION_TYPES or field_type == FieldType.CHECKBOX:
            options = _normalize_options(raw.get("options") or [])
            if field_type in OPTION_TYPES and not options:
                errors.append(f"{loc}: {field_type.value} fields need at least one option")
            values = [option["value"] for option in options]
            if len(values) != len(set(values)):
                errors.append(f"{loc}: option values must be unique")
            field["options"] = options
        if field_type == FieldType.SELECT:
            field["multiple"] = bool(raw.get("multiple"))

        if field_type == FieldType.FILE:
            field["accept"] = str(raw.get("accept") or "").strip()
            field["max_size"] = raw.get("max_size")

        validation = raw.get("validation") or {}
        if validation:
            pattern = validation.get("pattern")
            if pattern:
                try:
                    re.compile(pattern)
                except re.error:
                    errors.append(f"{loc}: invalid pattern ({pattern})")
            field["validation"] = {
                "min": validation.get("min"),
                "max": validation.get("max"),
                "pattern": pattern or None,
            }

        conditional = _normalize_conditional(raw.get("conditional"))
        if conditional:
            if conditional["operator"] not in OPERATORS:
                errors.append(f"{loc}: unknown operator ({conditional['operator']})")
            if conditional["action"] not in ACTIONS:
                errors.append(f"{loc}: unknown action ({conditional['action']})")
        field["conditional"] = conditional
        fields.append(field)

    known_ids = {field["id"] for field in fields}
    for field in fields:
        conditional = field.get("conditional")
        if not conditional:
            continue
        target = conditional["field_id"]
        if target == field["id"]:
            errors.append(f"{field['id']}: conditional rule cannot reference itself")
        elif target not in known_ids:
            errors.append(f"{field['id']}: conditional rule references unknown field ({target})")

    cycle = find_conditional_cycle(fields)
    if cycle and len(cycle) > 2:
        errors.append("conditional cycle: " + " -> ".join(cycle))

    return fields, errors


def parse_settings(raw: Any, current: dict[str, Any] | None = None) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    settings = dict(current or default_settings())
    if raw is None:
        return settings, errors
    if not isinstance(raw, dict):
        return settings, ["settings must be an object"]

    for key in ("submit_button_text", "success_message", "redirect_url"):
        if key in raw:
            settings[key] = str(raw.get(key) or "").strip()

    if "email_notifications" in raw:
        notify = raw.get("email_notifications") or {}
        if not isinstance(notify, dict):
            errors.append("email_notifications must be an object")
        else:
            recipients = notify.get("recipients") or []
            if not isinstance(recipients, list):
                errors.append("email_notifications.recipients must be a list")
                recipients = []
            settings["email_notifications"] = {
                "enabled": bool(notify.get("enabled")),
                "recipients": [str(item).strip() for item in recipients if str(item).strip()],
                "subject": str(notify.get("subject") or "").strip(),
            }
    return settings, errors


def default_settings() -> dict[str, Any]:
    return {
        "submit_button_text": "Submit",
        "success_message": "Thank you for your submission!",
        "redirect_url": "",
        "email_notifications": {"enabled": False, "recipients": [], "subject": ""},
    }


def public_field_output(field: dict[str, Any]) -> dict[str, Any]:
    field_type = field_type_of(field)
    return {**field, "input_type": INPUT_TYPES.get(field_type, "text")}
