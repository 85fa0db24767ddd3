from __future__ import annotations

from datetime import datetime
from typing import Any

from vibeforms.fields import FieldType, field_type_of, is_answerable
from vibeforms.utils import new_ulid, now_utc


def _file_urls(refs: list[dict[str, Any]]) -> list[str]:
    return [ref["url"] for ref in refs if ref.get("url")]


def assemble_submission(
    form_id: str,
    visible: list[dict[str, Any]],
    cleaned: dict[str, Any],
    *,
    user_agent: str | None = None,
    created_at: datetime | None = None,
    submission_id: str | None = None,
) -> dict[str, Any]:
    """Build the submission record from validated answers.

    ``data`` keeps field order and holds one entry per visible answerable
    field with a non-empty answer. File answers become lists of URLs.
    """
    data: dict[str, Any] = {}
    for field in visible:
        field_id = field["id"]
        if not is_answerable(field) or field_id not in cleaned:
            continue
        value = cleaned[field_id]
        if field_type_of(field) == FieldType.FILE:
            value = _file_urls(value)
            if not value:
                continue
        data[field_id] = value

    metadata: dict[str, Any] = {}
    if user_agent:
        metadata["user_agent"] = user_agent

    return {
        "id": submission_id or new_ulid(),
        "form_id": form_id,
        "data_json": data,
        "metadata_json": metadata,
        "created_at": created_at or now_utc(),
    }
