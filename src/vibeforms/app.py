from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vibeforms.auth import get_auth_provider
from vibeforms.config import Settings, ensure_dirs
from vibeforms.dispatch import NotificationDispatcher
from vibeforms.errors import ValidationFailed, VibeFormsError
from vibeforms.routes.forms import router as forms_router
from vibeforms.routes.public import router as public_router
from vibeforms.routes.submissions import router as submissions_router
from vibeforms.routes.webhooks import router as webhooks_router
from vibeforms.storage import init_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    pending = app.state.dispatcher.pending
    if pending:
        logger.info("Waiting for %d notification(s) before shutdown", pending)
    await app.state.dispatcher.drain()
    app.state.storage.close()


async def handle_domain_error(request: Request, exc: VibeFormsError) -> JSONResponse:
    if isinstance(exc, ValidationFailed):
        logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.violations)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or Settings()
    ensure_dirs(settings)
    storage = init_storage(settings)
    auth = get_auth_provider(settings)

    app = FastAPI(
        title="VibeForms",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "public", "description": "Public forms, submissions and uploads"},
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "api/webhooks", "description": "REST API: webhooks"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.storage = storage
    app.state.settings = settings
    app.state.auth_provider = auth
    app.state.dispatcher = NotificationDispatcher(settings, transport=transport)

    app.add_exception_handler(VibeFormsError, handle_domain_error)

    app.include_router(public_router)
    app.include_router(forms_router)
    app.include_router(submissions_router)
    app.include_router(webhooks_router)

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
