from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from vibeforms.errors import NotFound, NotPublished
from vibeforms.pipeline import file_reference, receive_submission
from vibeforms.routes.common import public_form_output, read_json_object
from vibeforms.utils import new_ulid, now_utc
from vibeforms.validation import matches_accept
from vibeforms.visibility import visible_fields

logger = logging.getLogger(__name__)

router = APIRouter()


def _published_form_by_share_id(request: Request, share_id: str) -> dict[str, Any]:
    form = request.app.state.storage.forms.get_form_by_share_id(share_id)
    if not form or not form.get("published"):
        raise NotFound("Form not found")
    return form


def _answers_from(form: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
    # A top-level "data" key is the answer of a field named "data" when one exists.
    field_ids = {field["id"] for field in form.get("fields") or []}
    if "data" in field_ids or "data" not in payload:
        return payload
    answers = payload["data"]
    if not isinstance(answers, dict):
        raise HTTPException(status_code=400, detail="data must be a JSON object")
    return answers


async def _submit(request: Request, form: dict[str, Any]) -> JSONResponse:
    payload = await read_json_object(request)
    submission = receive_submission(
        request.app.state.storage,
        request.app.state.dispatcher,
        form,
        _answers_from(form, payload),
        user_agent=request.headers.get("user-agent"),
    )
    return JSONResponse({"success": True, "submissionId": submission["id"]}, status_code=201)


@router.get("/api/public/forms/{share_id}", tags=["public"])
async def public_get_form(request: Request, share_id: str) -> JSONResponse:
    form = _published_form_by_share_id(request, share_id)
    return JSONResponse(public_form_output(form))


@router.post("/api/public/forms/{share_id}/visibility", tags=["public"])
async def public_form_visibility(request: Request, share_id: str) -> JSONResponse:
    form = _published_form_by_share_id(request, share_id)
    payload = await read_json_object(request)
    visible = visible_fields(form.get("fields") or [], _answers_from(form, payload))
    return JSONResponse({"visible": [field["id"] for field in visible]})


@router.post("/api/forms/{form_id}/submit", tags=["public"], status_code=201)
async def submit_form(request: Request, form_id: str) -> JSONResponse:
    form = request.app.state.storage.forms.get_form(form_id)
    if not form:
        raise NotFound("Form not found")
    return await _submit(request, form)


@router.post("/api/public/forms/{share_id}/submit", tags=["public"], status_code=201)
async def submit_shared_form(request: Request, share_id: str) -> JSONResponse:
    form = request.app.state.storage.forms.get_form_by_share_id(share_id)
    if not form:
        raise NotFound("Form not found")
    return await _submit(request, form)


@router.post("/api/uploads", tags=["public"], status_code=201)
async def upload_file(
    request: Request,
    form_id: str = Form(...),
    field_id: str | None = Form(None),
    file: UploadFile = File(...),
) -> JSONResponse:
    storage = request.app.state.storage
    settings = request.app.state.settings
    form = storage.forms.get_form(form_id)
    if not form:
        raise NotFound("Form not found")
    if not form.get("published"):
        raise NotPublished("Form is not accepting uploads")

    if field_id:
        field = next((f for f in form.get("fields") or [] if f.get("id") == field_id), None)
        if field is None or field.get("type") != "file":
            raise HTTPException(status_code=400, detail="Unknown file field")
        if not matches_accept(field.get("accept") or "", file.filename or "", file.content_type or ""):
            raise HTTPException(status_code=400, detail="File type is not allowed")

    content = await file.read()
    if settings.upload_max_bytes is not None and len(content) > settings.upload_max_bytes:
        raise HTTPException(status_code=413, detail="File exceeds the upload size limit")

    file_id = new_ulid()
    destination = settings.upload_dir / file_id
    destination.write_bytes(content)
    file_meta = {
        "id": file_id,
        "form_id": form_id,
        "original_name": file.filename or "",
        "stored_path": str(destination),
        "content_type": file.content_type or "",
        "size": len(content),
        "created_at": now_utc(),
    }
    storage.files.create_file(file_meta)
    logger.info("Stored upload %s (%d bytes) for form %s", file_id, len(content), form_id)
    return JSONResponse(file_reference(file_meta), status_code=201)


@router.get("/files/{file_id}", tags=["public"])
async def download_file(request: Request, file_id: str) -> FileResponse:
    storage = request.app.state.storage
    settings = request.app.state.settings
    file_meta = storage.files.get_file(file_id)
    if not file_meta:
        raise NotFound("File not found")
    path = Path(file_meta["stored_path"]).resolve()
    if settings.upload_dir.resolve() not in path.parents:
        raise HTTPException(status_code=400, detail="Invalid file path")
    if not path.exists():
        raise NotFound("File not found")
    return FileResponse(
        path,
        filename=file_meta.get("original_name") or file_id,
        media_type=file_meta.get("content_type") or None,
    )
