"""Translation of Supabase client failures into application errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError
from storage3.utils import StorageException

from skillbee.domain.errors import BackendError

NOT_FOUND_CODE = "PGRST116"


@contextmanager
def backend_errors(operation: str) -> Iterator[None]:
    """Re-raise PostgREST, storage and transport failures as BackendError."""
    try:
        yield
    except APIError as exc:
        raise BackendError(f"{operation} failed: {exc.message}") from exc
    except StorageException as exc:
        raise BackendError(f"{operation} failed: {exc}") from exc
    except httpx.HTTPError as exc:
        raise BackendError(f"{operation} failed: {exc}") from exc


def fetch_single(query) -> dict[str, object] | None:  # type: ignore[no-untyped-def]
    """Execute a ``single()`` query, mapping the no-rows error to None."""
    try:
        response = query.single().execute()
    except APIError as exc:
        if exc.code == NOT_FOUND_CODE:
            return None
        raise
    return response.data
