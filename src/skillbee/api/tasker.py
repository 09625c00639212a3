"""Tasker onboarding and task request endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)

from skillbee.api.dependencies import current_user_id, guarded
from skillbee.domain.navigation import SessionState  # noqa: TC001
from skillbee.domain.verification import (
    DOC_CERTIFICATE,
    DOC_CV,
    DOC_ID_DOCUMENT,
    DOC_PASSPORT_PHOTO,
    DocumentUpload,
    VerificationForm,
)

if TYPE_CHECKING:
    from skillbee.containers import AppContainer
    from skillbee.domain.bookings import Booking
    from skillbee.domain.verification import VerificationSubmission

router = APIRouter(tags=["tasker"])

onboarding_guard = guarded("/tasker-onboarding")
requests_guard = guarded("/task-requests")


@router.get("/tasker-onboarding/submission")
async def get_submission(
    request: Request, state: SessionState = Depends(onboarding_guard)
) -> dict[str, object]:
    """Return the caller's stored submission, if any."""
    container: AppContainer = request.app.state.container
    submission = container.verification_service.get_submission(current_user_id(state))
    return {"submission": serialize_submission(submission) if submission else None}


@router.post("/tasker-onboarding/documents/{kind}")
async def upload_document(
    kind: str,
    request: Request,
    file: UploadFile = File(...),
    state: SessionState = Depends(onboarding_guard),
) -> dict[str, str]:
    """Upload a single document ahead of submitting the form."""
    container: AppContainer = request.app.state.container
    upload = await _read_upload(file)
    path = container.verification_service.upload_document(
        current_user_id(state), kind, upload
    )
    return {"kind": kind, "path": path}


@router.post("/tasker-onboarding/submission")
async def submit_verification(  # noqa: PLR0913
    request: Request,
    service_category: str = Form(""),
    national_id_number: str = Form(""),
    bio: str | None = Form(None),
    hourly_rate: float | None = Form(None),
    operating_radius: float | None = Form(None),
    id_document: UploadFile | None = File(None),
    passport_photo: UploadFile | None = File(None),
    certificate: UploadFile | None = File(None),
    cv: UploadFile | None = File(None),
    state: SessionState = Depends(onboarding_guard),
) -> dict[str, object]:
    """Submit or resubmit verification details for review."""
    container: AppContainer = request.app.state.container
    files = {
        DOC_ID_DOCUMENT: id_document,
        DOC_PASSPORT_PHOTO: passport_photo,
        DOC_CERTIFICATE: certificate,
        DOC_CV: cv,
    }
    uploads = {
        kind: await _read_upload(file)
        for kind, file in files.items()
        if file is not None and file.filename
    }
    form = VerificationForm(
        service_category=service_category.strip(),
        national_id_number=national_id_number.strip(),
        bio=bio,
        hourly_rate=hourly_rate,
        operating_radius=operating_radius,
    )
    user_id = current_user_id(state)
    result = container.verification_service.submit(user_id, form, uploads)
    await container.session_store.load_profile(user_id)
    return {
        "submission": serialize_submission(result.submission),
        "failed_uploads": result.failed_uploads,
        "profile_synced": result.profile_synced,
    }


@router.get("/task-requests")
async def list_task_requests(
    request: Request, state: SessionState = Depends(requests_guard)
) -> dict[str, object]:
    """Return offered and available requests for the tasker."""
    container: AppContainer = request.app.state.container
    tasker_id = current_user_id(state)
    service = container.task_request_service
    return {
        "offered": [serialize_booking(b) for b in service.offered(tasker_id)],
        "available": [serialize_booking(b) for b in service.available(tasker_id)],
    }


@router.get("/task-requests/nearby")
async def nearby_task_requests(
    request: Request,
    latitude: float | None = None,
    longitude: float | None = None,
    _state: SessionState = Depends(requests_guard),
) -> dict[str, object]:
    """Return open requests near a point."""
    container: AppContainer = request.app.state.container
    bookings = container.task_request_service.nearby(latitude, longitude)
    return {"bookings": [serialize_booking(b) for b in bookings]}


@router.post("/task-requests/{booking_id}/accept")
async def accept_task_request(
    booking_id: UUID, request: Request, state: SessionState = Depends(requests_guard)
) -> dict[str, object]:
    """Take on a request."""
    container: AppContainer = request.app.state.container
    booking = container.task_request_service.accept(booking_id, current_user_id(state))
    return {"booking": serialize_booking(_found(booking))}


@router.post("/task-requests/{booking_id}/decline")
async def decline_task_request(
    booking_id: UUID, request: Request, state: SessionState = Depends(requests_guard)
) -> dict[str, object]:
    """Hand an offered request back to the open pool."""
    container: AppContainer = request.app.state.container
    booking = container.task_request_service.decline(
        booking_id, current_user_id(state)
    )
    return {"booking": serialize_booking(_found(booking))}


async def _read_upload(file: UploadFile) -> DocumentUpload:
    return DocumentUpload(
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        content=await file.read(),
    )


def _found(booking: Booking | None) -> Booking:
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    return booking


def serialize_submission(submission: VerificationSubmission) -> dict[str, object]:
    """Serialize a submission for its owner."""
    return {
        "status": submission.status,
        "service_category": submission.service_category,
        "national_id_number": submission.national_id_number,
        "bio": submission.bio,
        "hourly_rate": submission.hourly_rate,
        "operating_radius": submission.operating_radius,
        "rejection_reason": submission.rejection_reason,
        "documents": {
            DOC_ID_DOCUMENT: submission.id_document_ref,
            DOC_PASSPORT_PHOTO: submission.passport_photo_ref,
            DOC_CERTIFICATE: submission.certificate_ref,
            DOC_CV: submission.cv_ref,
        },
    }


def serialize_booking(booking: Booking) -> dict[str, object]:
    """Serialize a booking."""
    return {
        "id": str(booking.id),
        "client_id": str(booking.client_id),
        "tasker_id": str(booking.tasker_id) if booking.tasker_id else None,
        "service_type": booking.service_type,
        "status": booking.status,
        "budget": booking.budget,
        "location": booking.location,
        "notes": booking.notes,
        "latitude": booking.latitude,
        "longitude": booking.longitude,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
    }
