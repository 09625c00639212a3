"""Supabase-backed verification submission repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors, fetch_single
from skillbee.domain.errors import BackendError
from skillbee.domain.verification import VerificationSubmission
from skillbee.services.verification import VerificationRepository

_TABLE = "tasker_verifications"


@dataclass
class SupabaseVerificationRepository(VerificationRepository):
    """Supabase implementation for ``tasker_verifications``."""

    client: Client

    def get_submission(self, user_id: UUID) -> VerificationSubmission | None:
        """Return the submission for a user, if present."""
        with backend_errors("get_submission"):
            row = fetch_single(
                self.client.table(_TABLE).select("*").eq("user_id", str(user_id))
            )
        return _row_to_submission(row) if row else None

    def upsert_submission(
        self, submission: VerificationSubmission
    ) -> VerificationSubmission:
        """Insert or replace the submission on ``user_id``."""
        payload = {
            "user_id": str(submission.user_id),
            "service_category": submission.service_category,
            "national_id_number": submission.national_id_number,
            "id_document_url": submission.id_document_ref,
            "passport_photo_url": submission.passport_photo_ref,
            "certificate_url": submission.certificate_ref,
            "cv_url": submission.cv_ref,
            "bio": submission.bio,
            "hourly_rate": submission.hourly_rate,
            "operating_radius": submission.operating_radius,
            "status": submission.status,
            "rejection_reason": submission.rejection_reason,
        }
        with backend_errors("upsert_submission"):
            response = (
                self.client.table(_TABLE)
                .upsert(payload, on_conflict="user_id")
                .execute()
            )
        if not response.data:
            raise BackendError("Failed to store verification submission")
        return _row_to_submission(response.data[0])

    def set_review(
        self,
        user_id: UUID,
        status: str,
        reviewed_by: UUID,
        rejection_reason: str | None,
    ) -> VerificationSubmission:
        """Record an admin decision."""
        payload: dict[str, object] = {
            "status": status,
            "reviewed_by": str(reviewed_by),
            "reviewed_at": datetime.now(tz=UTC).isoformat(),
        }
        if rejection_reason is not None:
            payload["rejection_reason"] = rejection_reason
        with backend_errors("set_review"):
            response = (
                self.client.table(_TABLE)
                .update(payload)
                .eq("user_id", str(user_id))
                .execute()
            )
        if not response.data:
            raise BackendError(f"No verification submission updated for {user_id}")
        return _row_to_submission(response.data[0])

    def list_submissions(self, status: str | None) -> list[VerificationSubmission]:
        """Return submissions, newest first."""
        with backend_errors("list_submissions"):
            query = self.client.table(_TABLE).select("*")
            if status is not None:
                query = query.eq("status", status)
            response = query.order("created_at", desc=True).execute()
        return [_row_to_submission(row) for row in response.data or []]

    def list_statuses(self) -> list[str]:
        """Return the status column of every submission."""
        with backend_errors("list_statuses"):
            response = self.client.table(_TABLE).select("status").execute()
        return [str(row["status"]) for row in response.data or []]


def _row_to_submission(row: dict[str, object]) -> VerificationSubmission:
    reviewed_at = row.get("reviewed_at")
    reviewed_by = row.get("reviewed_by")
    return VerificationSubmission(
        user_id=UUID(str(row["user_id"])),
        service_category=str(row.get("service_category") or ""),
        national_id_number=str(row.get("national_id_number") or ""),
        id_document_ref=row.get("id_document_url"),
        passport_photo_ref=row.get("passport_photo_url"),
        certificate_ref=row.get("certificate_url"),
        cv_ref=row.get("cv_url"),
        bio=row.get("bio"),
        hourly_rate=_as_float(row.get("hourly_rate")),
        operating_radius=_as_float(row.get("operating_radius")),
        status=str(row["status"]),
        rejection_reason=row.get("rejection_reason"),
        reviewed_by=UUID(str(reviewed_by)) if reviewed_by else None,
        reviewed_at=datetime.fromisoformat(reviewed_at)
        if isinstance(reviewed_at, str) and reviewed_at
        else None,
    )


def _as_float(value: object) -> float | None:
    return float(value) if value is not None else None
