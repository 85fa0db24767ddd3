from __future__ import annotations

from typing import Any, Protocol


class FormRepository(Protocol):
    def list_forms(self, owner_id: str | None = None) -> list[dict[str, Any]]: ...

    def get_form(self, form_id: str) -> dict[str, Any] | None: ...

    def get_form_by_share_id(self, share_id: str) -> dict[str, Any] | None: ...

    def create_form(self, form: dict[str, Any]) -> None: ...

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    def delete_form(self, form_id: str) -> None: ...


class SubmissionRepository(Protocol):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]: ...

    def get_submission(self, submission_id: str) -> dict[str, Any] | None: ...

    def count_submissions(self, form_id: str) -> int: ...

    def create_submission(self, submission: dict[str, Any]) -> None: ...

    def delete_submission(self, submission_id: str) -> None: ...

    def delete_submissions(self, form_id: str, submission_ids: list[str]) -> int: ...


class WebhookRepository(Protocol):
    def list_webhooks(self, form_id: str) -> list[dict[str, Any]]: ...

    def create_webhook(self, webhook: dict[str, Any]) -> None: ...

    def delete_webhook(self, form_id: str, webhook_id: str) -> bool: ...


class FileRepository(Protocol):
    def create_file(self, file_meta: dict[str, Any]) -> None: ...

    def get_file(self, file_id: str) -> dict[str, Any] | None: ...


class Storage(Protocol):
    forms: FormRepository
    submissions: SubmissionRepository
    webhooks: WebhookRepository
    files: FileRepository

    def close(self) -> None: ...
