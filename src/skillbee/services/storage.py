"""Private document storage: validation, upload and signed URLs."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from skillbee.domain.errors import BackendError, ValidationError
from skillbee.domain.verification import DOC_CV, DOCUMENT_KINDS, DocumentUpload

logger = logging.getLogger(__name__)

IMAGE_AND_PDF_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/jpg", "application/pdf"}
)
CV_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)


class DocumentStorage(Protocol):
    """Interface for a private object storage bucket."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store bytes at ``path`` and return the stored path."""

    def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a time-limited URL for a stored object."""

    def remove(self, paths: list[str]) -> None:
        """Delete stored objects."""


@dataclass
class DocumentService:
    """Validates and stores verification documents."""

    storage: DocumentStorage
    bucket: str
    max_bytes: int = 10 * 1024 * 1024
    signed_url_ttl_seconds: int = 3600

    def validate(self, kind: str, upload: DocumentUpload) -> None:
        """Reject unknown kinds, oversized files and disallowed MIME types."""
        if kind not in DOCUMENT_KINDS:
            raise ValidationError(f"Unknown document type: {kind}")
        if upload.size == 0:
            raise ValidationError(f"{kind} file is empty")
        if upload.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationError(f"File size exceeds {limit_mb}MB limit")
        if kind == DOC_CV:
            if upload.content_type not in CV_TYPES:
                raise ValidationError(
                    "Invalid file type. Only PDF and Word documents are allowed for CV."
                )
        elif upload.content_type not in IMAGE_AND_PDF_TYPES:
            raise ValidationError(
                "Invalid file type. Only images (JPEG, PNG) and PDFs are allowed."
            )

    def upload(self, user_id: UUID, kind: str, upload: DocumentUpload) -> str:
        """Validate and store a document, returning its storage path."""
        self.validate(kind, upload)
        path = document_path(user_id, kind, upload.filename)
        return self.storage.upload(path, upload.content, upload.content_type)

    def discard(self, paths: list[str]) -> None:
        """Best-effort removal of files uploaded by an abandoned submission."""
        if not paths:
            return
        try:
            self.storage.remove(paths)
        except BackendError:
            logger.exception(
                "Error removing orphaned documents",
                extra={"paths": paths, "bucket": self.bucket},
            )

    def signed_url(self, path: str | None, user_id: UUID | None = None) -> str | None:
        """Return a signed URL, or None when the path is unusable or signing fails."""
        if not path:
            return None
        normalized = normalize_document_path(path, self.bucket, user_id)
        if normalized is None:
            logger.warning(
                "Invalid document path",
                extra={"path": path, "bucket": self.bucket},
            )
            return None
        try:
            return self.storage.create_signed_url(
                normalized, self.signed_url_ttl_seconds
            )
        except BackendError:
            logger.exception(
                "Error generating signed URL",
                extra={"path": normalized, "bucket": self.bucket},
            )
            return None


def document_path(
    user_id: UUID, kind: str, filename: str, now: datetime | None = None
) -> str:
    """Build ``{user_id}/{kind}_{epoch_ms}.{ext}``."""
    moment = now or datetime.now(tz=UTC)
    timestamp = int(moment.timestamp() * 1000)
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{user_id}/{kind}_{timestamp}.{ext}"


def normalize_document_path(
    path: str, bucket: str, user_id: UUID | None = None
) -> str | None:
    """Reduce a stored reference to ``userId/filename``.

    Accepts bare storage paths, public or signed URLs that contain the bucket
    name, and bare file names when ``user_id`` is known.
    """
    cleaned = path.strip()
    if not cleaned:
        return None
    if cleaned.startswith("http"):
        in_bucket = re.search(rf"{re.escape(bucket)}/([^?]+)", cleaned)
        if in_bucket:
            return in_bucket.group(1)
        tail = re.search(r"/([^/?]+/[^/?]+)(?:\?.*)?$", cleaned)
        return tail.group(1) if tail else None
    if "/" in cleaned:
        return cleaned
    if user_id is not None:
        return f"{user_id}/{cleaned}"
    return None
