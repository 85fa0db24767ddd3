"""Submission pipeline.

A submission moves ``received -> validated -> persisted ->
notifications_attempted``, or stops at ``rejected`` when validation fails.
Nothing is stored or sent for a rejected submission, and delivery problems
after persisting never change the outcome reported to the submitter.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from vibeforms.assembly import assemble_submission
from vibeforms.dispatch import NotificationDispatcher
from vibeforms.errors import NotPublished, ValidationFailed
from vibeforms.fields import FieldType, field_type_of
from vibeforms.protocols import FileRepository, Storage
from vibeforms.validation import validate_submission
from vibeforms.visibility import visible_fields

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    NOTIFICATIONS_ATTEMPTED = "notifications_attempted"
    REJECTED = "rejected"


def file_url(file_id: str) -> str:
    return f"/files/{file_id}"


def file_reference(file_meta: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": file_meta["id"],
        "name": file_meta.get("original_name", ""),
        "size": file_meta.get("size", 0),
        "content_type": file_meta.get("content_type", ""),
        "url": file_url(file_meta["id"]),
    }


def resolve_file_answers(
    file_repo: FileRepository, form: dict[str, Any], answers: dict[str, Any]
) -> dict[str, Any]:
    """Swap upload ids in file answers for references the validator can check."""
    resolved = dict(answers)
    for field in form.get("fields") or []:
        if field_type_of(field) != FieldType.FILE or field["id"] not in answers:
            continue
        raw = answers[field["id"]]
        upload_ids = raw if isinstance(raw, list) else [raw]
        refs: list[dict[str, Any]] = []
        for upload_id in upload_ids:
            if not isinstance(upload_id, str) or not upload_id:
                continue
            file_meta = file_repo.get_file(upload_id)
            if not file_meta or file_meta.get("form_id") != form["id"]:
                logger.warning("Ignoring unknown upload %s for form %s", upload_id, form["id"])
                continue
            refs.append(file_reference(file_meta))
        resolved[field["id"]] = refs
    return resolved


def prepare_submission(
    form: dict[str, Any],
    answers: dict[str, Any],
    *,
    user_agent: str | None = None,
) -> dict[str, Any]:
    """Run visibility, validation and assembly; raise ValidationFailed on any violation."""
    fields = form.get("fields") or []
    visible = visible_fields(fields, answers)
    cleaned, violations = validate_submission(visible, answers)
    if violations:
        raise ValidationFailed(violations)
    return assemble_submission(form["id"], visible, cleaned, user_agent=user_agent)


def receive_submission(
    storage: Storage,
    dispatcher: NotificationDispatcher,
    form: dict[str, Any],
    raw_answers: dict[str, Any],
    *,
    user_agent: str | None = None,
) -> dict[str, Any]:
    state = SubmissionState.RECEIVED
    if not form.get("published"):
        raise NotPublished("Form is not accepting submissions")

    answers = resolve_file_answers(storage.files, form, raw_answers)
    try:
        submission = prepare_submission(form, answers, user_agent=user_agent)
    except ValidationFailed as exc:
        state = SubmissionState.REJECTED
        logger.info(
            "Submission for form %s %s: %d violation(s)",
            form["id"],
            state.value,
            len(exc.violations),
        )
        raise
    state = SubmissionState.VALIDATED

    storage.submissions.create_submission(submission)
    state = SubmissionState.PERSISTED
    logger.info("Submission %s for form %s %s", submission["id"], form["id"], state.value)

    try:
        webhooks = storage.webhooks.list_webhooks(form["id"])
        dispatcher.notify_submission(form, webhooks, submission)
    except Exception:
        logger.exception("Could not schedule notifications for submission %s", submission["id"])
    state = SubmissionState.NOTIFICATIONS_ATTEMPTED
    logger.debug("Submission %s %s", submission["id"], state.value)
    return submission
