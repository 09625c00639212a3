"""Domain models for tasker verification."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

DOC_ID_DOCUMENT = "id_document"
DOC_PASSPORT_PHOTO = "passport_photo"
DOC_CERTIFICATE = "certificate"
DOC_CV = "cv"
REQUIRED_DOCUMENTS = (DOC_ID_DOCUMENT, DOC_PASSPORT_PHOTO)
OPTIONAL_DOCUMENTS = (DOC_CERTIFICATE, DOC_CV)
DOCUMENT_KINDS = REQUIRED_DOCUMENTS + OPTIONAL_DOCUMENTS


@dataclass(frozen=True)
class DocumentUpload:
    """A file supplied by the tasker."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class VerificationForm:
    """Text fields of a verification submission."""

    service_category: str | None = None
    national_id_number: str | None = None
    bio: str | None = None
    hourly_rate: float | None = None
    operating_radius: float | None = None


@dataclass(frozen=True)
class VerificationSubmission:
    """Stored verification submission, one per user."""

    user_id: UUID
    service_category: str
    national_id_number: str
    id_document_ref: str | None
    passport_photo_ref: str | None
    status: str
    certificate_ref: str | None = None
    cv_ref: str | None = None
    bio: str | None = None
    hourly_rate: float | None = None
    operating_radius: float | None = None
    rejection_reason: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None

    def document_ref(self, kind: str) -> str | None:
        """Return the stored reference for a document kind."""
        return getattr(self, f"{kind}_ref", None)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a submit call."""

    submission: VerificationSubmission
    failed_uploads: dict[str, str]
    profile_synced: bool
