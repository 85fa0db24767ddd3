from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from vibeforms.errors import InvalidDefinition
from vibeforms.fields import default_settings, parse_fields, parse_settings
from vibeforms.presets import get_preset, list_presets
from vibeforms.routes.common import (
    form_output,
    get_owned_form,
    owner_guard,
    read_json_object,
)
from vibeforms.utils import new_short_id, new_ulid, now_utc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/templates", tags=["api/forms"])
async def api_list_templates() -> JSONResponse:
    return JSONResponse(list_presets())


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(request: Request, owner_id: str = Depends(owner_guard)) -> JSONResponse:
    storage = request.app.state.storage
    forms = storage.forms.list_forms(owner_id)
    return JSONResponse(
        [
            form_output(form, storage.submissions.count_submissions(form["id"]))
            for form in forms
        ]
    )


@router.post("/api/forms", tags=["api/forms"], status_code=201)
async def api_create_form(request: Request, owner_id: str = Depends(owner_guard)) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json_object(request)

    base: dict[str, Any] = {"name": "", "description": "", "fields": []}
    template = payload.get("template")
    if template:
        preset = get_preset(str(template))
        if preset is None:
            raise HTTPException(status_code=400, detail=f"Unknown template: {template}")
        base = preset

    name = str(payload.get("name") or base["name"] or "Untitled Form").strip()
    description = str(payload.get("description") or base["description"] or "").strip()
    fields, errors = parse_fields(payload.get("fields", base["fields"]))
    settings, settings_errors = parse_settings(payload.get("settings"), default_settings())
    errors.extend(settings_errors)
    if errors:
        raise InvalidDefinition(errors)

    now = now_utc()
    form = {
        "id": new_ulid(),
        "share_id": new_short_id(),
        "owner_id": owner_id,
        "name": name,
        "description": description,
        "fields": fields,
        "settings": settings,
        "published": False,
        "created_at": now,
        "updated_at": now,
    }
    storage.forms.create_form(form)
    logger.info("Form %s created by %s", form["id"], owner_id)
    created = storage.forms.get_form(form["id"])
    return JSONResponse(form_output(created or form, 0), status_code=201)


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    form = get_owned_form(request, form_id, owner_id)
    response = form_output(form, storage.submissions.count_submissions(form_id))
    return JSONResponse(response)


@router.patch("/api/forms/{form_id}", tags=["api/forms"])
async def api_update_form(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    form = get_owned_form(request, form_id, owner_id)
    payload = await read_json_object(request)

    updates: dict[str, Any] = {}
    errors: list[str] = []
    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            errors.append("name is required")
        updates["name"] = name
    if "description" in payload:
        updates["description"] = str(payload.get("description") or "").strip()
    if "fields" in payload:
        fields, field_errors = parse_fields(payload.get("fields"))
        errors.extend(field_errors)
        updates["fields"] = fields
    if "settings" in payload:
        settings, settings_errors = parse_settings(payload.get("settings"), form.get("settings"))
        errors.extend(settings_errors)
        updates["settings"] = settings
    if "published" in payload:
        updates["published"] = bool(payload.get("published"))
    if errors:
        raise InvalidDefinition(errors)

    updates["updated_at"] = now_utc()
    updated = storage.forms.update_form(form_id, updates)
    return JSONResponse(form_output(updated))


async def _set_published(request: Request, form_id: str, owner_id: str, published: bool) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    updated = storage.forms.update_form(
        form_id, {"published": published, "updated_at": now_utc()}
    )
    logger.info("Form %s %s", form_id, "published" if published else "unpublished")
    return JSONResponse(form_output(updated))


@router.post("/api/forms/{form_id}/publish", tags=["api/forms"])
async def api_publish_form(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    return await _set_published(request, form_id, owner_id, True)


@router.post("/api/forms/{form_id}/unpublish", tags=["api/forms"])
async def api_unpublish_form(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    return await _set_published(request, form_id, owner_id, False)


@router.delete("/api/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    storage.forms.delete_form(form_id)
    logger.info("Form %s deleted with its submissions and webhooks", form_id)
    return JSONResponse({"success": True})
