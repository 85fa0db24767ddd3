from datetime import datetime, timezone

import pytest

from vibeforms.export import csv_headers_and_rows, export_csv, render_csv

FIELDS = [
    {"id": "intro", "type": "heading", "label": "Welcome"},
    {"id": "name", "type": "text", "label": "Name"},
    {"id": "colors", "type": "checkbox", "label": "Colors", "options": [{"label": "Red", "value": "Red"}, {"label": "Blue", "value": "Blue"}]},
    {"id": "agree", "type": "checkbox", "label": "Agree"},
]


def _submission(data, minute=0):
    return {
        "id": f"s{minute}",
        "form_id": "form",
        "data_json": data,
        "metadata_json": {},
        "created_at": datetime(2024, 5, 1, 12, minute, tzinfo=timezone.utc),
    }


def test_multi_value_cell_uses_context_separator():
    submissions = [
        _submission({"name": "Ada", "colors": ["Red", "Blue"], "agree": True}),
        _submission({"name": "Bob"}, minute=1),
    ]

    content = export_csv(FIELDS, submissions, "submissions")

    lines = content.splitlines()
    assert lines[0] == "Submitted At,Name,Colors,Agree"
    assert lines[1] == "2024-05-01T12:00:00+00:00,Ada,Red; Blue,Yes"
    assert lines[2] == "2024-05-01T12:01:00+00:00,Bob,,"


def test_responses_context_joins_with_comma_and_quotes():
    content = export_csv(FIELDS, [_submission({"colors": ["Red", "Blue"]})], "responses")
    assert content.splitlines()[1].endswith(',"Red, Blue",')


def test_layout_fields_have_no_column():
    headers, rows = csv_headers_and_rows(FIELDS, [_submission({"name": "Ada"})])
    assert "Welcome" not in headers
    assert len(rows[0]) == len(headers)


def test_special_characters_are_escaped():
    content = render_csv(["a", "b", "c"], [['say "hi"', "x,y", "two\nlines"]])
    assert content == 'a,b,c\n"say ""hi""","x,y","two\nlines"\n'


def test_unknown_context_is_rejected():
    with pytest.raises(ValueError):
        export_csv(FIELDS, [], "spreadsheet")
