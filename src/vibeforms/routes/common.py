from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request

from vibeforms.errors import NotFound, UnauthorizedOwner
from vibeforms.fields import public_field_output
from vibeforms.utils import to_iso


def owner_guard(request: Request) -> str:
    return request.app.state.auth_provider.require_owner(request)


def get_owned_form(request: Request, form_id: str, owner_id: str) -> dict[str, Any]:
    form = request.app.state.storage.forms.get_form(form_id)
    if not form:
        raise NotFound("Form not found")
    if form.get("owner_id") != owner_id:
        raise UnauthorizedOwner("Form belongs to another owner")
    return form


async def read_json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


def form_output(form: dict[str, Any], submission_count: int | None = None) -> dict[str, Any]:
    output = {
        "id": form["id"],
        "share_id": form["share_id"],
        "owner_id": form.get("owner_id", ""),
        "name": form.get("name", ""),
        "description": form.get("description", ""),
        "fields": form.get("fields", []),
        "settings": form.get("settings", {}),
        "published": bool(form.get("published")),
        "created_at": to_iso(form["created_at"]),
        "updated_at": to_iso(form["updated_at"]),
    }
    if submission_count is not None:
        output["submission_count"] = submission_count
    return output


def public_form_output(form: dict[str, Any]) -> dict[str, Any]:
    settings = dict(form.get("settings") or {})
    settings.pop("email_notifications", None)
    return {
        "id": form["id"],
        "share_id": form["share_id"],
        "name": form.get("name", ""),
        "description": form.get("description", ""),
        "fields": [public_field_output(field) for field in form.get("fields", [])],
        "settings": settings,
    }


def submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "form_id": submission["form_id"],
        "data": submission.get("data_json", {}),
        "metadata": submission.get("metadata_json", {}),
        "created_at": to_iso(submission["created_at"]),
    }


def webhook_output(webhook: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": webhook["id"],
        "form_id": webhook["form_id"],
        "url": webhook["url"],
        "secret": webhook["secret"],
        "active": bool(webhook.get("active")),
        "events": webhook.get("events", []),
        "created_at": to_iso(webhook["created_at"]),
    }
