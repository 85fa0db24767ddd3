from __future__ import annotations

import logging
from typing import Any

import httpx

from vibeforms.config import Settings
from vibeforms.errors import NotificationDeliveryFailed
from vibeforms.fields import field_labels

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"


def _display(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def email_recipients(form: dict[str, Any]) -> list[str]:
    notify = (form.get("settings") or {}).get("email_notifications") or {}
    if not notify.get("enabled"):
        return []
    return list(notify.get("recipients") or [])


def build_email_subject(form: dict[str, Any]) -> str:
    notify = (form.get("settings") or {}).get("email_notifications") or {}
    return notify.get("subject") or f"New submission: {form.get('name', '')}"


def build_email_body(form: dict[str, Any], data: dict[str, Any]) -> str:
    labels = field_labels(form.get("fields") or [])
    lines = [f"New submission received for form: {form.get('name', '')}", ""]
    for field_id, value in data.items():
        lines.append(f"{labels.get(field_id, field_id)}: {_display(value)}")
    return "\n".join(lines) + "\n"


async def send_email_notification(
    client: httpx.AsyncClient,
    settings: Settings,
    form: dict[str, Any],
    data: dict[str, Any],
) -> bool:
    recipients = email_recipients(form)
    if not recipients:
        return False
    if not settings.resend_api_key:
        logger.info("Email notification skipped for form %s: RESEND_API_KEY not set", form["id"])
        return False

    try:
        response = await client.post(
            RESEND_SEND_URL,
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            json={
                "from": settings.email_from,
                "to": recipients,
                "subject": build_email_subject(form),
                "text": build_email_body(form, data),
            },
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise NotificationDeliveryFailed(f"email for form {form['id']}: {exc}") from exc
    logger.info("Email notification sent for form %s to %d recipient(s)", form["id"], len(recipients))
    return True
