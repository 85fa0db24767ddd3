from __future__ import annotations

import os
from pathlib import Path


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/jsonstore.json"))
        self.upload_dir = Path(os.getenv("UPLOAD_DIR", "./data/uploads"))
        self.upload_max_bytes = _int_env("UPLOAD_MAX_BYTES", None)
        self.auth_mode = os.getenv("AUTH_MODE", "none").lower()
        self.owner_header = os.getenv("OWNER_HEADER", "X-User-Id")
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = _int_env("PORT", 8000) or 8000
        self.webhook_timeout = _float_env("WEBHOOK_TIMEOUT", 10.0)
        self.resend_api_key = os.getenv("RESEND_API_KEY", "")
        self.email_from = os.getenv("EMAIL_FROM", "VibeForms <noreply@vibeforms.app>")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


def ensure_dirs(settings: Settings) -> None:
    settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
    settings.json_path.parent.mkdir(parents=True, exist_ok=True)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
