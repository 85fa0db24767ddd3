from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from vibeforms.errors import NotFound
from vibeforms.routes.common import (
    get_owned_form,
    owner_guard,
    read_json_object,
    webhook_output,
)
from vibeforms.utils import new_secret, new_ulid, now_utc
from vibeforms.webhook import SUBMISSION_CREATED, is_valid_webhook_url

logger = logging.getLogger(__name__)

router = APIRouter()

SUPPORTED_EVENTS = {SUBMISSION_CREATED}


@router.get("/api/forms/{form_id}/webhooks", tags=["api/webhooks"])
async def api_list_webhooks(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    webhooks = storage.webhooks.list_webhooks(form_id)
    return JSONResponse([webhook_output(item) for item in webhooks])


@router.post("/api/forms/{form_id}/webhooks", tags=["api/webhooks"], status_code=201)
async def api_create_webhook(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    payload = await read_json_object(request)

    url = str(payload.get("url", "")).strip()
    if not is_valid_webhook_url(url):
        raise HTTPException(status_code=400, detail="url must be an http(s) URL")
    events = payload.get("events") or [SUBMISSION_CREATED]
    if not isinstance(events, list) or not set(events).issubset(SUPPORTED_EVENTS):
        raise HTTPException(status_code=400, detail="Unsupported events")

    webhook = {
        "id": new_ulid(),
        "form_id": form_id,
        "url": url,
        "secret": new_secret(),
        "active": bool(payload.get("active", True)),
        "events": list(dict.fromkeys(events)),
        "created_at": now_utc(),
    }
    storage.webhooks.create_webhook(webhook)
    logger.info("Webhook %s registered for form %s", webhook["id"], form_id)
    return JSONResponse(webhook_output(webhook), status_code=201)


@router.delete("/api/forms/{form_id}/webhooks/{webhook_id}", tags=["api/webhooks"])
async def api_delete_webhook(
    request: Request, form_id: str, webhook_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    if not storage.webhooks.delete_webhook(form_id, webhook_id):
        raise NotFound("Webhook not found")
    return JSONResponse({"success": True})
