"""Sign-up, sign-in and session endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from skillbee.api.models import CallbackRequest, LoginRequest, SignUpRequest
from skillbee.domain.errors import ProfileSetupIncompleteError
from skillbee.domain.navigation import ROOT_PATH, decision_payload
from skillbee.services.routes import navigate

if TYPE_CHECKING:
    from skillbee.containers import AppContainer
    from skillbee.domain.models import ProfileRecord

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.get("/session")
async def current_session(request: Request) -> dict[str, object]:
    """Return the session snapshot."""
    container: AppContainer = request.app.state.container
    state = container.session_store.state
    user = None
    if state.identity is not None:
        user = {"id": str(state.identity.id), "email": state.identity.email}
    return {
        "loading": state.loading,
        "user": user,
        "profile": serialize_profile(state.profile),
    }


@router.post("/signup")
async def sign_up(body: SignUpRequest, request: Request) -> dict[str, object]:
    """Register a client or tasker account."""
    container: AppContainer = request.app.state.container
    extra = {"full_name": body.full_name, "phone": body.phone, "address": body.address}
    result = await container.session_store.sign_up(
        body.email,
        body.password,
        body.role,
        {key: value for key, value in extra.items() if value},
    )
    return {
        "user_id": str(result.identity.id),
        "confirmation_required": not result.session_active,
    }


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> dict[str, object]:
    """Sign in and return where to go next."""
    container: AppContainer = request.app.state.container
    identity = await container.session_store.sign_in(body.email, body.password)
    decision = navigate(body.redirect_to or ROOT_PATH, container.session_store.state)
    return {"user_id": str(identity.id), "next": decision_payload(decision)}


@router.post("/logout")
async def logout(request: Request) -> dict[str, str]:
    """Sign out of the current session."""
    container: AppContainer = request.app.state.container
    await container.session_store.sign_out()
    return {"status": "ok"}


@router.post("/callback", response_model=None)
async def auth_callback(
    body: CallbackRequest, request: Request
) -> dict[str, object] | JSONResponse:
    """Finish email confirmation and return the landing decision."""
    container: AppContainer = request.app.state.container
    try:
        decision = await container.confirmation_handler.handle(
            access_token=body.access_token,
            refresh_token=body.refresh_token,
            error=body.error,
            error_description=body.error_description,
        )
    except ProfileSetupIncompleteError as exc:
        logger.warning("Profile setup incomplete after email confirmation")
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"status": "setup_incomplete", "error": str(exc)},
        )
    return decision_payload(decision)


def serialize_profile(profile: ProfileRecord | None) -> dict[str, object] | None:
    """Serialize a profile for API responses."""
    if profile is None:
        return None
    return {
        "id": str(profile.id),
        "role": profile.role,
        "verification_status": profile.verification_status,
        "full_name": profile.full_name,
        "email": profile.email,
        "phone": profile.phone,
        "bio": profile.bio,
        "address": profile.address,
        "avatar_url": profile.avatar_url,
        "hourly_rate": profile.hourly_rate,
        "services_offered": profile.services_offered,
    }
