from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable

import httpx

from vibeforms.config import Settings
from vibeforms.errors import NotificationDeliveryFailed
from vibeforms.mailer import email_recipients, send_email_notification
from vibeforms.utils import now_utc
from vibeforms.webhook import (
    SUBMISSION_CREATED,
    build_payload,
    is_subscribed,
    send_webhook,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget delivery of submission notifications.

    Every delivery runs as its own task. A failing task is logged and
    dropped; nothing is raised back to whoever scheduled it.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.webhook_timeout, transport=self._transport
        )

    def dispatch(self, work: Awaitable[Any], label: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._guard(work, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, work: Awaitable[Any], label: str) -> None:
        try:
            await work
        except NotificationDeliveryFailed as exc:
            logger.warning("Notification failed (%s): %s", label, exc.message)
        except Exception:
            logger.exception("Notification crashed (%s)", label)

    async def _deliver_webhook(self, webhook: dict[str, Any], payload: bytes) -> None:
        async with self._client() as client:
            await send_webhook(client, webhook, payload)

    async def _deliver_email(self, form: dict[str, Any], data: dict[str, Any]) -> None:
        async with self._client() as client:
            await send_email_notification(client, self._settings, form, data)

    def notify_submission(
        self,
        form: dict[str, Any],
        webhooks: list[dict[str, Any]],
        submission: dict[str, Any],
    ) -> list[asyncio.Task[None]]:
        data = submission.get("data_json", {})
        payload = build_payload(form["id"], data, now_utc())
        tasks = [
            self.dispatch(
                self._deliver_webhook(webhook, payload),
                f"webhook {webhook.get('id')}",
            )
            for webhook in webhooks
            if is_subscribed(webhook, SUBMISSION_CREATED)
        ]
        if email_recipients(form):
            tasks.append(
                self.dispatch(self._deliver_email(form, data), f"email form {form['id']}")
            )
        logger.info(
            "Dispatched %d notification(s) for submission %s", len(tasks), submission["id"]
        )
        return tasks

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
