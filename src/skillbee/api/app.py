"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from skillbee.api.account import router as account_router
from skillbee.api.admin import router as admin_router
from skillbee.api.auth import router as auth_router
from skillbee.api.messages import router as messages_router
from skillbee.api.tasker import router as tasker_router
from skillbee.app_logging import configure_logging
from skillbee.containers import AppContainer, build_container
from skillbee.domain.errors import (
    AuthError,
    BackendError,
    DocumentUploadError,
    InvalidTransitionError,
    PermissionDeniedError,
    ProfileSetupIncompleteError,
    SkillbeeError,
    ValidationError,
)
from skillbee.domain.navigation import decision_payload
from skillbee.services.routes import navigate

_STATUS_BY_ERROR: tuple[tuple[type[SkillbeeError], int], ...] = (
    (DocumentUploadError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ProfileSetupIncompleteError, status.HTTP_202_ACCEPTED),
    (BackendError, status.HTTP_502_BAD_GATEWAY),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.session_store.initialize()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(tasker_router)
    app.include_router(messages_router)
    app.include_router(account_router)

    @app.exception_handler(SkillbeeError)
    async def handle_app_error(request: Request, exc: SkillbeeError) -> JSONResponse:
        """Turn application errors into inline error payloads."""
        status_code = _status_for(exc)
        if isinstance(exc, BackendError):
            logger.error(
                "Backend call failed", extra={"path": request.url.path}, exc_info=exc
            )
            message = _format_backend_error(
                container, exc, "Something went wrong talking to the server."
            )
        else:
            message = str(exc)
        payload: dict[str, object] = {"error": message}
        if isinstance(exc, DocumentUploadError):
            payload["failures"] = exc.failures
        if isinstance(exc, ProfileSetupIncompleteError):
            payload["status"] = "setup_incomplete"
        return JSONResponse(status_code=status_code, content=payload)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Last-resort recovery response."""
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Something went wrong. Please reload the page.",
                "action": "reload",
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/navigate")
    async def resolve_navigation(
        request: Request, path: str = "/"
    ) -> dict[str, object]:
        """Resolve which view to show for ``path`` in the current session."""
        state_container: AppContainer = request.app.state.container
        decision = navigate(path, state_container.session_store.state)
        return decision_payload(decision)

    return app


def build_app() -> FastAPI:
    """App factory for ``uvicorn --factory skillbee.api.app:build_app``."""
    return create_app(build_container())


def _status_for(exc: SkillbeeError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _format_backend_error(
    state_container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
