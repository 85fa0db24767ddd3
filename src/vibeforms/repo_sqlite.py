from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, func
from sqlalchemy.orm import sessionmaker

from vibeforms.models import Base, FileModel, FormModel, SubmissionModel, WebhookModel
from vibeforms.utils import dumps_json, ensure_aware, loads_json


class SQLiteFormRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def list_forms(self, owner_id: str | None = None) -> list[dict[str, Any]]:
        with self._Session() as session:
            query = session.query(FormModel)
            if owner_id is not None:
                query = query.filter(FormModel.owner_id == owner_id)
            rows = query.order_by(FormModel.updated_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            return self._to_dict(row) if row else None

    def get_form_by_share_id(self, share_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.query(FormModel).filter(FormModel.share_id == share_id).first()
            return self._to_dict(row) if row else None

    def create_form(self, form: dict[str, Any]) -> None:
        with self._Session() as session:
            row = FormModel(
                id=form["id"],
                share_id=form["share_id"],
                owner_id=form["owner_id"],
                name=form["name"],
                description=form.get("description", ""),
                fields_json=dumps_json(form.get("fields", [])),
                settings_json=dumps_json(form.get("settings", {})),
                published=bool(form.get("published")),
                created_at=form["created_at"],
                updated_at=form["updated_at"],
            )
            session.add(row)
            session.commit()

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise KeyError(form_id)
            for key, value in updates.items():
                if key in {"fields", "settings"}:
                    setattr(row, f"{key}_json", dumps_json(value))
                else:
                    setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> None:
        with self._Session() as session:
            for model in (SubmissionModel, WebhookModel, FileModel):
                session.query(model).filter(model.form_id == form_id).delete()
            row = session.get(FormModel, form_id)
            if row:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_dict(row: FormModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "share_id": row.share_id,
            "owner_id": row.owner_id,
            "name": row.name,
            "description": row.description or "",
            "fields": loads_json(row.fields_json) or [],
            "settings": loads_json(row.settings_json) or {},
            "published": bool(row.published),
            "created_at": ensure_aware(row.created_at),
            "updated_at": ensure_aware(row.updated_at),
        }


class SQLiteSubmissionRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def list_submissions(self, form_id: str) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = (
                session.query(SubmissionModel)
                .filter(SubmissionModel.form_id == form_id)
                .order_by(SubmissionModel.created_at.desc(), SubmissionModel.id.desc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(SubmissionModel, submission_id)
            return self._to_dict(row) if row else None

    def count_submissions(self, form_id: str) -> int:
        with self._Session() as session:
            return (
                session.query(func.count(SubmissionModel.id))
                .filter(SubmissionModel.form_id == form_id)
                .scalar()
                or 0
            )

    def create_submission(self, submission: dict[str, Any]) -> None:
        with self._Session() as session:
            row = SubmissionModel(
                id=submission["id"],
                form_id=submission["form_id"],
                data_json=dumps_json(submission["data_json"]),
                metadata_json=dumps_json(submission.get("metadata_json") or {}),
                created_at=submission["created_at"],
            )
            session.add(row)
            session.commit()

    def delete_submission(self, submission_id: str) -> None:
        with self._Session() as session:
            row = session.get(SubmissionModel, submission_id)
            if row:
                session.delete(row)
                session.commit()

    def delete_submissions(self, form_id: str, submission_ids: list[str]) -> int:
        if not submission_ids:
            return 0
        with self._Session() as session:
            deleted = (
                session.query(SubmissionModel)
                .filter(
                    SubmissionModel.form_id == form_id,
                    SubmissionModel.id.in_(submission_ids),
                )
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted

    @staticmethod
    def _to_dict(row: SubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "data_json": loads_json(row.data_json) or {},
            "metadata_json": loads_json(row.metadata_json) or {},
            "created_at": ensure_aware(row.created_at),
        }


class SQLiteWebhookRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def list_webhooks(self, form_id: str) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = (
                session.query(WebhookModel)
                .filter(WebhookModel.form_id == form_id)
                .order_by(WebhookModel.created_at.desc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def create_webhook(self, webhook: dict[str, Any]) -> None:
        with self._Session() as session:
            row = WebhookModel(
                id=webhook["id"],
                form_id=webhook["form_id"],
                url=webhook["url"],
                secret=webhook["secret"],
                active=bool(webhook.get("active", True)),
                events_json=dumps_json(webhook.get("events", [])),
                created_at=webhook["created_at"],
            )
            session.add(row)
            session.commit()

    def delete_webhook(self, form_id: str, webhook_id: str) -> bool:
        with self._Session() as session:
            row = session.get(WebhookModel, webhook_id)
            if not row or row.form_id != form_id:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_dict(row: WebhookModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "url": row.url,
            "secret": row.secret,
            "active": bool(row.active),
            "events": loads_json(row.events_json) or [],
            "created_at": ensure_aware(row.created_at),
        }


class SQLiteFileRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def create_file(self, file_meta: dict[str, Any]) -> None:
        with self._Session() as session:
            row = FileModel(
                id=file_meta["id"],
                form_id=file_meta["form_id"],
                original_name=file_meta["original_name"],
                stored_path=file_meta["stored_path"],
                content_type=file_meta["content_type"],
                size=file_meta["size"],
                created_at=file_meta["created_at"],
            )
            session.add(row)
            session.commit()

    def get_file(self, file_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(FileModel, file_id)
            if not row:
                return None
            return {
                "id": row.id,
                "form_id": row.form_id,
                "original_name": row.original_name,
                "stored_path": row.stored_path,
                "content_type": row.content_type,
                "size": row.size,
                "created_at": ensure_aware(row.created_at),
            }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)
        self.webhooks = SQLiteWebhookRepo(self._Session)
        self.files = SQLiteFileRepo(self._Session)

    def close(self) -> None:
        self._engine.dispose()
