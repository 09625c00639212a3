"""Supabase Storage bucket for private documents."""

from dataclasses import dataclass

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors
from skillbee.domain.errors import BackendError
from skillbee.services.storage import DocumentStorage


@dataclass
class SupabaseDocumentStorage(DocumentStorage):
    """Stores documents in a private bucket and signs download URLs."""

    client: Client
    bucket: str

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload without overwriting and return the storage path."""
        with backend_errors("upload"):
            self.client.storage.from_(self.bucket).upload(
                path,
                content,
                {
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        return path

    def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a signed URL valid for ``expires_in`` seconds."""
        with backend_errors("create_signed_url"):
            data = self.client.storage.from_(self.bucket).create_signed_url(
                path, expires_in
            )
        url = data.get("signedURL") or data.get("signedUrl")
        if not url:
            raise BackendError(f"No signed URL returned for {path}")
        return str(url)

    def remove(self, paths: list[str]) -> None:
        """Delete objects from the bucket."""
        with backend_errors("remove"):
            self.client.storage.from_(self.bucket).remove(paths)
