"""Tasker verification workflow.

Status moves ``None -> pending -> approved | rejected``. A rejected tasker may
resubmit, which goes back to ``pending``. The submission row and the profile's
``verification_status`` hold the same state. The submission is written first.
"""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from skillbee.domain.errors import (
    BackendError,
    DocumentUploadError,
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from skillbee.domain.models import (
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    VERIFICATION_STATUSES,
    ProfileRecord,
)
from skillbee.domain.verification import (
    DOCUMENT_KINDS,
    REQUIRED_DOCUMENTS,
    DocumentUpload,
    SubmissionResult,
    VerificationForm,
    VerificationSubmission,
)
from skillbee.services.profiles import ProfileRepository
from skillbee.services.storage import DocumentService

logger = logging.getLogger(__name__)


class VerificationRepository(Protocol):
    """Persistence interface for verification submissions."""

    def get_submission(self, user_id: UUID) -> VerificationSubmission | None:
        """Return the submission for a user, if present."""

    def upsert_submission(
        self, submission: VerificationSubmission
    ) -> VerificationSubmission:
        """Insert or replace the submission keyed by user id."""

    def set_review(
        self,
        user_id: UUID,
        status: str,
        reviewed_by: UUID,
        rejection_reason: str | None,
    ) -> VerificationSubmission:
        """Record an admin decision on a submission."""

    def list_submissions(self, status: str | None) -> list[VerificationSubmission]:
        """Return submissions, newest first, optionally filtered by status."""

    def list_statuses(self) -> list[str]:
        """Return the status of every submission."""


@dataclass
class VerificationService:
    """Submission and review of tasker verification documents."""

    repository: VerificationRepository
    profile_repository: ProfileRepository
    documents: DocumentService

    def get_submission(self, user_id: UUID) -> VerificationSubmission | None:
        """Return the caller's stored submission."""
        return self.repository.get_submission(user_id)

    def upload_document(self, user_id: UUID, kind: str, upload: DocumentUpload) -> str:
        """Upload one document on its own and return its storage path."""
        return self.documents.upload(user_id, kind, upload)

    def submit(
        self,
        user_id: UUID,
        form: VerificationForm,
        uploads: dict[str, DocumentUpload] | None = None,
    ) -> SubmissionResult:
        """Create or replace the user's submission and mark it pending.

        Required fields and documents may come from this call or from the
        stored submission. A failed optional upload keeps the previously stored file.
        """
        uploads = dict(uploads or {})
        unknown = sorted(set(uploads) - set(DOCUMENT_KINDS))
        if unknown:
            raise ValidationError(f"Unknown document type: {', '.join(unknown)}")

        prior = self.repository.get_submission(user_id)
        if prior is not None and prior.status == STATUS_APPROVED:
            raise InvalidTransitionError("Verification is already approved")
        service_category = form.service_category or (
            prior.service_category if prior else None
        )
        national_id_number = form.national_id_number or (
            prior.national_id_number if prior else None
        )
        if not service_category or not national_id_number:
            raise ValidationError("Please fill in all required fields")
        missing = [
            kind
            for kind in REQUIRED_DOCUMENTS
            if kind not in uploads and not (prior and prior.document_ref(kind))
        ]
        if missing:
            raise ValidationError("Please upload both ID document and passport photo")
        for kind, upload in uploads.items():
            self.documents.validate(kind, upload)

        refs = {
            kind: prior.document_ref(kind) if prior else None
            for kind in DOCUMENT_KINDS
        }
        failures: dict[str, str] = {}
        for kind, upload in uploads.items():
            try:
                refs[kind] = self.documents.upload(user_id, kind, upload)
            except BackendError as exc:
                logger.exception(
                    "Document upload failed",
                    extra={"user_id": str(user_id), "kind": kind},
                )
                failures[kind] = str(exc)
        blocking = {k: v for k, v in failures.items() if k in REQUIRED_DOCUMENTS}
        if blocking:
            self.documents.discard(
                [refs[kind] for kind in uploads if kind not in failures and refs[kind]]
            )
            raise DocumentUploadError(blocking)

        submission = VerificationSubmission(
            user_id=user_id,
            service_category=service_category,
            national_id_number=national_id_number,
            id_document_ref=refs["id_document"],
            passport_photo_ref=refs["passport_photo"],
            certificate_ref=refs["certificate"],
            cv_ref=refs["cv"],
            bio=form.bio or (prior.bio if prior else None),
            hourly_rate=_first_set(
                form.hourly_rate, prior.hourly_rate if prior else None
            ),
            operating_radius=_first_set(
                form.operating_radius, prior.operating_radius if prior else None
            ),
            status=STATUS_PENDING,
            rejection_reason=prior.rejection_reason if prior else None,
        )
        stored = self.repository.upsert_submission(submission)
        synced = self._sync_profile(user_id, STATUS_PENDING)
        return SubmissionResult(
            submission=stored, failed_uploads=failures, profile_synced=synced
        )

    def approve(self, reviewer: ProfileRecord, user_id: UUID) -> VerificationSubmission:
        """Approve a pending submission."""
        _require_admin(reviewer)
        return self._review(reviewer, user_id, STATUS_APPROVED, None)

    def reject(
        self, reviewer: ProfileRecord, user_id: UUID, reason: str | None
    ) -> VerificationSubmission:
        """Reject a pending submission with a reason."""
        _require_admin(reviewer)
        cleaned = (reason or "").strip()
        if not cleaned:
            raise ValidationError("Please provide a rejection reason")
        return self._review(reviewer, user_id, STATUS_REJECTED, cleaned)

    def list_applications(self, status: str | None = None) -> list[dict[str, object]]:
        """Return submissions joined with applicant profiles."""
        if status is not None and status not in VERIFICATION_STATUSES:
            raise ValidationError(f"Unknown status filter: {status}")
        submissions = self.repository.list_submissions(status)
        profiles = {
            profile.id: profile
            for profile in self.profile_repository.list_profiles(
                [submission.user_id for submission in submissions]
            )
        }
        return [
            {
                **_serialize_submission(submission),
                "applicant": _serialize_applicant(profiles.get(submission.user_id)),
            }
            for submission in submissions
        ]

    def status_counts(self) -> dict[str, int]:
        """Return how many submissions are in each status."""
        counts = {status: 0 for status in sorted(VERIFICATION_STATUSES)}
        for status in self.repository.list_statuses():
            if status in counts:
                counts[status] += 1
        return counts

    def review_detail(self, user_id: UUID) -> dict[str, object] | None:
        """Return a submission with signed document URLs for review."""
        submission = self.repository.get_submission(user_id)
        if submission is None:
            return None
        profile = self.profile_repository.get_profile(user_id)
        documents = {
            kind: self.documents.signed_url(submission.document_ref(kind), user_id)
            for kind in DOCUMENT_KINDS
        }
        return {
            **_serialize_submission(submission),
            "applicant": _serialize_applicant(profile),
            "documents": documents,
        }

    def _review(
        self,
        reviewer: ProfileRecord,
        user_id: UUID,
        status: str,
        reason: str | None,
    ) -> VerificationSubmission:
        submission = self.repository.get_submission(user_id)
        if submission is None:
            raise InvalidTransitionError(f"No verification submission for {user_id}")
        if submission.status == status:
            # Repeat of a decision whose profile write failed: only resync.
            logger.info(
                "Review already recorded, resyncing profile",
                extra={"user_id": str(user_id), "status": status},
            )
        elif submission.status != STATUS_PENDING:
            raise InvalidTransitionError(
                f"Cannot move a {submission.status} submission to {status}"
            )
        else:
            submission = self.repository.set_review(
                user_id, status, reviewer.id, reason
            )
        if not self._sync_profile(user_id, status):
            raise BackendError(
                "Submission was reviewed but the profile status was not updated"
            )
        return replace(submission, status=status)

    def _sync_profile(self, user_id: UUID, status: str) -> bool:
        try:
            self.profile_repository.update_profile(
                user_id, {"verification_status": status}
            )
        except BackendError:
            logger.exception(
                "Error updating profile verification status",
                extra={"user_id": str(user_id), "status": status},
            )
            return False
        return True


def _first_set(value: float | None, fallback: float | None) -> float | None:
    return value if value is not None else fallback


def _require_admin(reviewer: ProfileRecord) -> None:
    if not reviewer.is_admin:
        raise PermissionDeniedError("Only admins can review verifications")


def _serialize_submission(submission: VerificationSubmission) -> dict[str, object]:
    return {
        "user_id": str(submission.user_id),
        "status": submission.status,
        "service_category": submission.service_category,
        "national_id_number": submission.national_id_number,
        "bio": submission.bio,
        "hourly_rate": submission.hourly_rate,
        "operating_radius": submission.operating_radius,
        "rejection_reason": submission.rejection_reason,
        "reviewed_at": submission.reviewed_at.isoformat()
        if submission.reviewed_at
        else None,
    }


def _serialize_applicant(profile: ProfileRecord | None) -> dict[str, object] | None:
    if profile is None:
        return None
    return {
        "id": str(profile.id),
        "full_name": profile.full_name,
        "email": profile.email,
        "phone": profile.phone,
        "verification_status": profile.verification_status,
    }
