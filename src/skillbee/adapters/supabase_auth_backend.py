"""Supabase-backed auth backend."""

from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

import httpx
from supabase import AuthError as SupabaseAuthError
from supabase import Client

from skillbee.domain.errors import AuthError, BackendError
from skillbee.domain.models import SessionIdentity, SignUpResult
from skillbee.services.sessions import AuthBackend, AuthListener


@dataclass
class SupabaseAuthBackend(AuthBackend):
    """Supabase implementation of session issuance and events."""

    client: Client

    def get_session(self) -> SessionIdentity | None:
        """Return the identity of the stored session, if any."""
        try:
            session = self.client.auth.get_session()
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise BackendError(f"get_session failed: {exc}") from exc
        if session is None or session.user is None:
            return None
        return _to_identity(session.user)

    def sign_up(
        self, email: str, password: str, metadata: dict[str, object]
    ) -> SignUpResult:
        """Register a user; metadata is stored as user metadata."""
        try:
            response = self.client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata}}
            )
        except SupabaseAuthError as exc:
            raise AuthError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Auth service unreachable: {exc}") from exc
        if response.user is None:
            raise AuthError("Sign-up did not return a user")
        return SignUpResult(
            identity=_to_identity(response.user),
            session_active=response.session is not None,
        )

    def sign_in(self, email: str, password: str) -> SessionIdentity:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except SupabaseAuthError as exc:
            raise AuthError(str(exc) or "Invalid email or password") from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Auth service unreachable: {exc}") from exc
        if response.user is None:
            raise AuthError("Invalid email or password")
        return _to_identity(response.user)

    def set_session(self, access_token: str, refresh_token: str) -> SessionIdentity:
        """Adopt tokens from a confirmation link."""
        try:
            response = self.client.auth.set_session(access_token, refresh_token)
        except SupabaseAuthError as exc:
            raise AuthError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Auth service unreachable: {exc}") from exc
        if response.user is None:
            raise AuthError("Confirmation link did not produce a session")
        return _to_identity(response.user)

    def sign_out(self) -> None:
        """Sign out of the current session."""
        try:
            self.client.auth.sign_out()
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise BackendError(f"sign_out failed: {exc}") from exc

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Forward Supabase auth events as identities."""

        def handle(event, session) -> None:  # type: ignore[no-untyped-def]
            user = getattr(session, "user", None)
            listener(str(event), _to_identity(user) if user is not None else None)

        try:
            subscription = self.client.auth.on_auth_state_change(handle)
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise BackendError(f"on_auth_state_change failed: {exc}") from exc
        return subscription.unsubscribe


def _to_identity(user) -> SessionIdentity:  # type: ignore[no-untyped-def]
    return SessionIdentity(
        id=UUID(str(user.id)),
        email=user.email,
        metadata=dict(user.user_metadata or {}),
    )
