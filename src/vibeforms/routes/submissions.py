from __future__ import annotations

import base64
import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from vibeforms.analytics import build_analytics
from vibeforms.errors import NotFound
from vibeforms.export import DEFAULT_CONTEXT, LIST_SEPARATORS, export_csv
from vibeforms.routes.common import (
    get_owned_form,
    owner_guard,
    read_json_object,
    submission_output,
)
from vibeforms.utils import ensure_aware

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def encode_cursor(created_at: datetime, submission_id: str) -> str:
    value = f"{ensure_aware(created_at).isoformat()}|{submission_id}"
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("utf-8")


def decode_cursor(cursor: str) -> tuple[datetime, str] | None:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("utf-8")).decode("utf-8")
        created_at_raw, submission_id = raw.split("|", 1)
        created_at = datetime.fromisoformat(created_at_raw)
        return ensure_aware(created_at), submission_id
    except (ValueError, UnicodeDecodeError):
        return None


def _parse_limit(raw: str | None) -> int:
    if raw is None:
        return DEFAULT_PAGE_SIZE
    try:
        limit = int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="limit must be an integer") from None
    return max(1, min(limit, MAX_PAGE_SIZE))


@router.get("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_list_submissions(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    submissions = storage.submissions.list_submissions(form_id)

    limit = _parse_limit(request.query_params.get("limit"))
    cursor_raw = request.query_params.get("cursor")
    if cursor_raw:
        cursor = decode_cursor(cursor_raw)
        if not cursor:
            raise HTTPException(status_code=400, detail="Invalid cursor")
        cursor_dt, cursor_id = cursor
        submissions = [
            item
            for item in submissions
            if ensure_aware(item["created_at"]) < cursor_dt
            or (ensure_aware(item["created_at"]) == cursor_dt and item["id"] < cursor_id)
        ]

    page_items = submissions[:limit]
    headers: dict[str, str] = {}
    if len(submissions) > limit:
        last = page_items[-1]
        headers["X-Next-Cursor"] = encode_cursor(last["created_at"], last["id"])
    return JSONResponse([submission_output(item) for item in page_items], headers=headers)


@router.get("/api/forms/{form_id}/submissions/{submission_id}", tags=["api/submissions"])
async def api_get_submission(
    request: Request, form_id: str, submission_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    submission = storage.submissions.get_submission(submission_id)
    if not submission or submission["form_id"] != form_id:
        raise NotFound("Submission not found")
    return JSONResponse(submission_output(submission))


@router.delete("/api/forms/{form_id}/submissions/{submission_id}", tags=["api/submissions"])
async def api_delete_submission(
    request: Request, form_id: str, submission_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    submission = storage.submissions.get_submission(submission_id)
    if not submission or submission["form_id"] != form_id:
        raise NotFound("Submission not found")
    storage.submissions.delete_submission(submission_id)
    return JSONResponse({"success": True})


@router.post("/api/forms/{form_id}/submissions/delete", tags=["api/submissions"])
async def api_delete_submissions(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(request, form_id, owner_id)
    payload = await read_json_object(request)
    submission_ids = payload.get("submission_ids")
    if not isinstance(submission_ids, list) or not all(isinstance(i, str) for i in submission_ids):
        raise HTTPException(status_code=400, detail="submission_ids must be a list of ids")
    deleted = storage.submissions.delete_submissions(form_id, submission_ids)
    logger.info("Deleted %d submission(s) from form %s", deleted, form_id)
    return JSONResponse({"success": True, "deleted": deleted})


@router.get("/api/forms/{form_id}/export", tags=["api/submissions"])
async def api_export_submissions(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> PlainTextResponse:
    storage = request.app.state.storage
    form = get_owned_form(request, form_id, owner_id)
    context = request.query_params.get("context", DEFAULT_CONTEXT)
    if context not in LIST_SEPARATORS:
        raise HTTPException(status_code=400, detail=f"Unknown export context: {context}")

    submissions = storage.submissions.list_submissions(form_id)
    content = export_csv(form.get("fields", []), submissions, context)
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", form.get("name") or "form").strip("_") or "form"
    filename = f"{slug}-{context}.csv"
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/api/forms/{form_id}/analytics", tags=["api/submissions"])
async def api_form_analytics(
    request: Request, form_id: str, owner_id: str = Depends(owner_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    form = get_owned_form(request, form_id, owner_id)
    submissions = storage.submissions.list_submissions(form_id)
    return JSONResponse(build_analytics(form.get("fields", []), submissions))
