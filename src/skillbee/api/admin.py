"""Admin sign-in and verification review endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from skillbee.api.dependencies import guarded
from skillbee.api.models import LoginRequest, RejectRequest
from skillbee.domain.errors import PermissionDeniedError
from skillbee.domain.navigation import (  # noqa: TC001
    ADMIN_DASHBOARD_PATH,
    SessionState,
    decision_payload,
)
from skillbee.services.routes import navigate

if TYPE_CHECKING:
    from skillbee.containers import AppContainer
    from skillbee.domain.models import ProfileRecord
    from skillbee.domain.verification import VerificationSubmission

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_ONLY_MESSAGE = "Access denied. Admin credentials required."


@router.post("/login")
async def admin_login(body: LoginRequest, request: Request) -> dict[str, object]:
    """Sign in and keep the session only for admin accounts."""
    container: AppContainer = request.app.state.container
    await container.session_store.sign_in(body.email, body.password)
    profile = container.session_store.state.profile
    if profile is None or not profile.is_admin:
        await container.session_store.sign_out()
        raise PermissionDeniedError(ADMIN_ONLY_MESSAGE)
    decision = navigate(ADMIN_DASHBOARD_PATH, container.session_store.state)
    return {"user_id": str(profile.id), "next": decision_payload(decision)}


@router.get("/verifications")
async def list_verifications(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    state: SessionState = Depends(guarded("/admin/dashboard")),
) -> dict[str, object]:
    """Return verification applications and per-status counts."""
    container: AppContainer = request.app.state.container
    _reviewer(state)
    service = container.verification_service
    return {
        "applications": service.list_applications(status_filter),
        "stats": service.status_counts(),
    }


@router.get("/review/{user_id}")
async def review_detail(
    user_id: UUID,
    request: Request,
    state: SessionState = Depends(guarded("/admin/review/{user_id}")),
) -> dict[str, object]:
    """Return one application with signed document links."""
    container: AppContainer = request.app.state.container
    _reviewer(state)
    detail = container.verification_service.review_detail(user_id)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Verification submission not found",
        )
    return detail


@router.post("/review/{user_id}/approve")
async def approve(
    user_id: UUID,
    request: Request,
    state: SessionState = Depends(guarded("/admin/review/{user_id}")),
) -> dict[str, object]:
    """Approve a pending application."""
    container: AppContainer = request.app.state.container
    submission = container.verification_service.approve(_reviewer(state), user_id)
    return _decision_result(submission)


@router.post("/review/{user_id}/reject")
async def reject(
    user_id: UUID,
    body: RejectRequest,
    request: Request,
    state: SessionState = Depends(guarded("/admin/review/{user_id}")),
) -> dict[str, object]:
    """Reject a pending application with a reason."""
    container: AppContainer = request.app.state.container
    submission = container.verification_service.reject(
        _reviewer(state), user_id, body.reason
    )
    return _decision_result(submission)


def _reviewer(state: SessionState) -> ProfileRecord:
    # Views let a missing profile through; admin data does not.
    if state.profile is None or not state.profile.is_admin:
        raise PermissionDeniedError(ADMIN_ONLY_MESSAGE)
    return state.profile


def _decision_result(submission: VerificationSubmission) -> dict[str, object]:
    return {
        "user_id": str(submission.user_id),
        "status": submission.status,
        "rejection_reason": submission.rejection_reason,
    }
