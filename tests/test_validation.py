from vibeforms.fields import parse_fields
from vibeforms.validation import (
    MISSING,
    OUT_OF_RANGE,
    PATTERN_MISMATCH,
    TOO_LARGE,
    UNSUPPORTED_TYPE,
    WRONG_TYPE,
    matches_accept,
    validate_submission,
)
from vibeforms.visibility import visible_fields


def _fields(raw):
    fields, errors = parse_fields(raw)
    assert errors == []
    return fields


PLAN_FIELDS = [
    {"id": "name", "type": "text", "label": "Name", "required": True},
    {"id": "plan", "type": "select", "label": "Plan", "required": True, "options": ["Basic", "Pro"]},
    {
        "id": "promoCode",
        "type": "text",
        "label": "Promo code",
        "conditional": {"field_id": "plan", "operator": "equals", "value": "Pro", "action": "show"},
    },
]


def _validate(fields, answers):
    return validate_submission(visible_fields(fields, answers), answers)


def test_hidden_required_field_is_not_missing():
    raw = [dict(item) for item in PLAN_FIELDS]
    raw[2]["required"] = True
    fields = _fields(raw)

    cleaned, violations = _validate(fields, {"name": "Ada", "plan": "Basic"})

    assert violations == []
    assert cleaned == {"name": "Ada", "plan": "Basic"}


def test_visible_required_field_is_missing():
    raw = [dict(item) for item in PLAN_FIELDS]
    raw[2]["required"] = True
    fields = _fields(raw)

    _, violations = _validate(fields, {"name": "Ada", "plan": "Pro"})

    assert violations == [{"field": "promoCode", "reason": MISSING}]


def test_visible_optional_field_may_be_omitted():
    fields = _fields(PLAN_FIELDS)
    cleaned, violations = _validate(fields, {"name": "Ada", "plan": "Pro"})
    assert violations == []
    assert "promoCode" not in cleaned


def test_missing_name_is_reported():
    fields = _fields(PLAN_FIELDS)
    _, violations = _validate(fields, {"plan": "Basic"})
    assert violations == [{"field": "name", "reason": MISSING}]


def test_answers_for_hidden_fields_are_dropped():
    fields = _fields(PLAN_FIELDS)
    cleaned, violations = _validate(fields, {"name": "Ada", "plan": "Basic", "promoCode": "X1", "stray": 1})
    assert violations == []
    assert cleaned == {"name": "Ada", "plan": "Basic"}


def test_every_violation_is_reported():
    fields = _fields(
        [
            {"id": "email", "type": "email", "required": True},
            {"id": "age", "type": "number", "validation": {"min": 18, "max": 99}},
            {"id": "zip", "type": "text", "validation": {"pattern": r"\d{5}"}},
            {"id": "born", "type": "date"},
            {"id": "color", "type": "radio", "options": ["red", "green"]},
        ]
    )
    answers = {"email": "nope", "age": "12", "zip": "12a45", "born": "2024-02-30", "color": "blue"}

    _, violations = _validate(fields, answers)

    assert violations == [
        {"field": "email", "reason": WRONG_TYPE},
        {"field": "age", "reason": OUT_OF_RANGE},
        {"field": "zip", "reason": PATTERN_MISMATCH},
        {"field": "born", "reason": WRONG_TYPE},
        {"field": "color", "reason": WRONG_TYPE},
    ]


def test_values_are_normalized():
    fields = _fields(
        [
            {"id": "age", "type": "number"},
            {"id": "agree", "type": "checkbox", "label": "Agree"},
            {"id": "colors", "type": "checkbox", "options": ["red", "green", "blue"]},
        ]
    )
    cleaned, violations = _validate(fields, {"age": "42", "agree": "on", "colors": ["blue", "red"]})

    assert violations == []
    assert cleaned == {"age": 42, "agree": True, "colors": ["red", "blue"]}


def test_unchecked_required_checkbox_is_missing():
    fields = _fields([{"id": "terms", "type": "checkbox", "label": "Terms", "required": True}])
    _, violations = _validate(fields, {"terms": False})
    assert violations == [{"field": "terms", "reason": MISSING}]


def test_file_type_and_size_limits():
    fields = _fields([{"id": "cv", "type": "file", "accept": ".pdf", "max_size": 100}])

    _, violations = _validate(fields, {"cv": [{"name": "cv.exe", "size": 10, "url": "/files/1"}]})
    assert violations == [{"field": "cv", "reason": UNSUPPORTED_TYPE}]

    _, violations = _validate(fields, {"cv": [{"name": "cv.pdf", "size": 500, "url": "/files/1"}]})
    assert violations == [{"field": "cv", "reason": TOO_LARGE}]


def test_matches_accept_patterns():
    assert matches_accept("", "anything.bin")
    assert matches_accept(".pdf,.png", "Report.PDF")
    assert matches_accept("image/*", "photo", "image/jpeg")
    assert matches_accept("application/pdf", "x", "application/pdf")
    assert not matches_accept(".pdf", "notes.txt", "text/plain")
