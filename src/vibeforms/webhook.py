from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

import httpx
import orjson

from vibeforms.errors import NotificationDeliveryFailed
from vibeforms.utils import now_utc, to_iso_z

logger = logging.getLogger(__name__)

SUBMISSION_CREATED = "submission.created"
SIGNATURE_HEADER = "X-Webhook-Signature"


def is_valid_webhook_url(url: str) -> bool:
    if not url:
        return False
    parsed = urlsplit(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def is_subscribed(webhook: dict[str, Any], event: str) -> bool:
    return bool(webhook.get("active")) and event in (webhook.get("events") or [])


def build_payload(
    form_id: str, data: dict[str, Any], timestamp: datetime | None = None
) -> bytes:
    """Serialize the delivery body; these exact bytes are what gets signed."""
    return orjson.dumps(
        {
            "event": SUBMISSION_CREATED,
            "formId": form_id,
            "data": data,
            "timestamp": to_iso_z(timestamp or now_utc()),
        }
    )


def sign_payload(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(secret: str, payload: bytes, signature: str) -> bool:
    return hmac.compare_digest(sign_payload(secret, payload), signature)


async def send_webhook(
    client: httpx.AsyncClient,
    webhook: dict[str, Any],
    payload: bytes,
) -> None:
    headers = {"Content-Type": "application/json"}
    if webhook.get("secret"):
        headers[SIGNATURE_HEADER] = sign_payload(webhook["secret"], payload)

    try:
        response = await client.post(webhook["url"], content=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise NotificationDeliveryFailed(
            f"webhook {webhook.get('id')} -> {webhook['url']}: {exc}"
        ) from exc
    logger.info("Webhook sent successfully: %s -> %s", webhook.get("id"), webhook["url"])
