import pytest

from vibeforms.errors import ConditionalCycleError
from vibeforms.visibility import evaluate_condition, resolve_visibility, visible_fields


def _rule(field_id, operator, value, action="show"):
    return {"field_id": field_id, "operator": operator, "value": value, "action": action}


FIELDS = [
    {"id": "has_pet", "type": "radio", "options": [{"label": "Yes", "value": "yes"}, {"label": "No", "value": "no"}]},
    {"id": "pet_kind", "type": "text", "conditional": _rule("has_pet", "equals", "yes")},
    {"id": "pet_name", "type": "text", "conditional": _rule("pet_kind", "not_equals", "")},
    {"id": "notes", "type": "textarea"},
]


def test_unconditional_fields_are_always_visible():
    ids = [f["id"] for f in visible_fields(FIELDS, {})]
    assert ids == ["has_pet", "notes"]


def test_hidden_controller_hides_dependents():
    answers = {"has_pet": "no", "pet_kind": "cat"}
    visibility = resolve_visibility(FIELDS, answers)
    assert visibility["pet_kind"] is False
    # pet_kind has a value but is hidden, so pet_name stays hidden too.
    assert visibility["pet_name"] is False


def test_chain_becomes_visible_once_satisfied():
    answers = {"has_pet": "yes", "pet_kind": "cat"}
    ids = [f["id"] for f in visible_fields(FIELDS, answers)]
    assert ids == ["has_pet", "pet_kind", "pet_name", "notes"]


def test_result_does_not_depend_on_declaration_order():
    answers = {"has_pet": "yes", "pet_kind": "dog"}
    reversed_fields = list(reversed(FIELDS))
    assert resolve_visibility(FIELDS, answers) == resolve_visibility(reversed_fields, answers)


def test_hide_action_inverts_condition():
    fields = [
        {"id": "a", "type": "text"},
        {"id": "b", "type": "text", "conditional": _rule("a", "equals", "skip", action="hide")},
    ]
    assert resolve_visibility(fields, {"a": "skip"})["b"] is False
    assert resolve_visibility(fields, {"a": "keep"})["b"] is True


def test_equals_is_strict_about_types():
    assert evaluate_condition(_rule("n", "equals", "1"), {"n": 1}) is False
    assert evaluate_condition(_rule("n", "equals", 1), {"n": 1}) is True
    assert evaluate_condition(_rule("n", "equals", 1), {"n": True}) is False


def test_numeric_comparison_needs_two_numbers():
    assert evaluate_condition(_rule("age", "greater_than", "17"), {"age": "18"}) is True
    assert evaluate_condition(_rule("age", "greater_than", "17"), {"age": "abc"}) is False
    assert evaluate_condition(_rule("age", "less_than", 5), {"age": ""}) is False


def test_contains_checks_substrings_and_lists():
    assert evaluate_condition(_rule("bio", "contains", "py"), {"bio": "python dev"}) is True
    assert evaluate_condition(_rule("tags", "contains", "red"), {"tags": ["blue", "red"]}) is True
    assert evaluate_condition(_rule("bio", "contains", "go"), {}) is False


def test_absent_answer_counts_as_empty_string():
    assert evaluate_condition(_rule("x", "equals", ""), {}) is True
    assert evaluate_condition(_rule("x", "not_equals", ""), {}) is False


def test_unknown_controller_is_treated_as_visible():
    fields = [{"id": "b", "type": "text", "conditional": _rule("ghost", "equals", "")}]
    assert resolve_visibility(fields, {})["b"] is True


def test_cycle_raises():
    fields = [
        {"id": "a", "type": "text", "conditional": _rule("b", "equals", "1")},
        {"id": "b", "type": "text", "conditional": _rule("a", "equals", "1")},
    ]
    with pytest.raises(ConditionalCycleError):
        resolve_visibility(fields, {})


def test_long_chain_resolves_without_recursion():
    size = 3000
    fields = [{"id": "q0", "type": "text"}]
    for index in range(1, size):
        fields.append(
            {"id": f"q{index}", "type": "text", "conditional": _rule(f"q{index - 1}", "not_equals", "stop")}
        )

    assert all(resolve_visibility(fields, {}).values())
    assert all(resolve_visibility(list(reversed(fields)), {}).values())

    visibility = resolve_visibility(fields, {"q10": "stop"})
    assert visibility["q10"] is True
    assert visibility["q11"] is False
    assert visibility[f"q{size - 1}"] is False


def test_self_reference_raises():
    fields = [{"id": "a", "type": "text", "conditional": _rule("a", "equals", "")}]
    with pytest.raises(ConditionalCycleError) as exc_info:
        resolve_visibility(fields, {})
    assert exc_info.value.cycle == ["a", "a"]
