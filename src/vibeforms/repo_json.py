from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock
from tinydb import Query, TinyDB

from vibeforms.utils import now_utc, parse_dt, to_iso


class JSONRepoBase:
    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterator[TinyDB]:
        with self._lock:
            db = TinyDB(self._path)
            try:
                yield db
            finally:
                db.close()


def _dump_dates(record: dict[str, Any]) -> dict[str, Any]:
    return {
        key: to_iso(value) if isinstance(value, datetime) else value
        for key, value in record.items()
    }


class JSONFormRepo(JSONRepoBase):
    def list_forms(self, owner_id: str | None = None) -> list[dict[str, Any]]:
        with self._db() as db:
            table = db.table("forms")
            if owner_id is None:
                items = table.all()
            else:
                items = table.search(Query().owner_id == owner_id)
        forms = [self._from_record(item) for item in items]
        return sorted(forms, key=lambda x: x["updated_at"], reverse=True)

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("forms").get(Query().id == form_id)
        return self._from_record(item) if item else None

    def get_form_by_share_id(self, share_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("forms").get(Query().share_id == share_id)
        return self._from_record(item) if item else None

    def create_form(self, form: dict[str, Any]) -> None:
        record = self._to_record(form)
        with self._db() as db:
            db.table("forms").insert(record)

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._db() as db:
            table = db.table("forms")
            item = table.get(Query().id == form_id)
            if not item:
                raise KeyError(form_id)
            item = dict(item)
            item.update(self._to_record(updates, partial=True))
            table.update(item, Query().id == form_id)
        return self._from_record(item)

    def delete_form(self, form_id: str) -> None:
        with self._db() as db:
            for name in ("submissions", "webhooks", "files"):
                db.table(name).remove(Query().form_id == form_id)
            db.table("forms").remove(Query().id == form_id)

    @staticmethod
    def _to_record(form: dict[str, Any], partial: bool = False) -> dict[str, Any]:
        record = _dump_dates(form)
        if not partial:
            record.setdefault("created_at", to_iso(now_utc()))
            record.setdefault("updated_at", to_iso(now_utc()))
        return record

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "share_id": record["share_id"],
            "owner_id": record.get("owner_id", ""),
            "name": record["name"],
            "description": record.get("description", ""),
            "fields": record.get("fields", []),
            "settings": record.get("settings", {}),
            "published": bool(record.get("published", False)),
            "created_at": parse_dt(record.get("created_at")),
            "updated_at": parse_dt(record.get("updated_at")),
        }


class JSONSubmissionRepo(JSONRepoBase):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("submissions").search(Query().form_id == form_id)
        submissions = [self._from_record(item) for item in items]
        return sorted(submissions, key=lambda x: (x["created_at"], x["id"]), reverse=True)

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("submissions").get(Query().id == submission_id)
        return self._from_record(item) if item else None

    def count_submissions(self, form_id: str) -> int:
        with self._db() as db:
            return db.table("submissions").count(Query().form_id == form_id)

    def create_submission(self, submission: dict[str, Any]) -> None:
        record = self._to_record(submission)
        with self._db() as db:
            db.table("submissions").insert(record)

    def delete_submission(self, submission_id: str) -> None:
        with self._db() as db:
            db.table("submissions").remove(Query().id == submission_id)

    def delete_submissions(self, form_id: str, submission_ids: list[str]) -> int:
        if not submission_ids:
            return 0
        wanted = set(submission_ids)
        with self._db() as db:
            removed = db.table("submissions").remove(
                (Query().form_id == form_id) & Query().id.one_of(list(wanted))
            )
        return len(removed)

    @staticmethod
    def _to_record(submission: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": submission["id"],
            "form_id": submission["form_id"],
            "data_json": submission["data_json"],
            "metadata_json": submission.get("metadata_json") or {},
            "created_at": to_iso(submission["created_at"]),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "data_json": record.get("data_json", {}),
            "metadata_json": record.get("metadata_json", {}),
            "created_at": parse_dt(record.get("created_at")),
        }


class JSONWebhookRepo(JSONRepoBase):
    def list_webhooks(self, form_id: str) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("webhooks").search(Query().form_id == form_id)
        webhooks = [self._from_record(item) for item in items]
        return sorted(webhooks, key=lambda x: x["created_at"], reverse=True)

    def create_webhook(self, webhook: dict[str, Any]) -> None:
        with self._db() as db:
            db.table("webhooks").insert(_dump_dates(webhook))

    def delete_webhook(self, form_id: str, webhook_id: str) -> bool:
        with self._db() as db:
            removed = db.table("webhooks").remove(
                (Query().form_id == form_id) & (Query().id == webhook_id)
            )
        return bool(removed)

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "url": record.get("url", ""),
            "secret": record.get("secret", ""),
            "active": bool(record.get("active", True)),
            "events": record.get("events", []),
            "created_at": parse_dt(record.get("created_at")),
        }


class JSONFileRepo(JSONRepoBase):
    def create_file(self, file_meta: dict[str, Any]) -> None:
        with self._db() as db:
            db.table("files").insert(_dump_dates(file_meta))

    def get_file(self, file_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("files").get(Query().id == file_id)
        return self._from_record(item) if item else None

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "original_name": record.get("original_name", ""),
            "stored_path": record.get("stored_path", ""),
            "content_type": record.get("content_type", ""),
            "size": record.get("size", 0),
            "created_at": parse_dt(record.get("created_at")),
        }


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self._lock = FileLock(f"{path}.lock")
        self.forms = JSONFormRepo(path, self._lock)
        self.submissions = JSONSubmissionRepo(path, self._lock)
        self.webhooks = JSONWebhookRepo(path, self._lock)
        self.files = JSONFileRepo(path, self._lock)

    def close(self) -> None:
        return None
