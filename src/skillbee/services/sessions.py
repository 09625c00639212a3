"""Application-scoped session store.

The store owns the current identity and its profile. It resolves them once at
start-up and again after every auth event pushed by the backend. Profile loads run
in worker threads and can finish out of order. Each resolution takes a generation
number, and a result is applied only while its generation is still the latest.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from skillbee.domain.errors import BackendError, ValidationError
from skillbee.domain.models import (
    SELF_SERVICE_ROLES,
    ProfileRecord,
    SessionIdentity,
    SignUpResult,
)
from skillbee.domain.navigation import SessionState
from skillbee.services.accounts import AccountService
from skillbee.services.profiles import ProfileLoader

logger = logging.getLogger(__name__)

AuthListener = Callable[[str, SessionIdentity | None], None]
StateListener = Callable[[SessionState], None]


class AuthBackend(Protocol):
    """Interface to the hosted auth service."""

    def get_session(self) -> SessionIdentity | None:
        """Return the identity of the stored session, if any."""

    def sign_up(
        self, email: str, password: str, metadata: dict[str, object]
    ) -> SignUpResult:
        """Register a new account."""

    def sign_in(self, email: str, password: str) -> SessionIdentity:
        """Exchange credentials for a session."""

    def set_session(self, access_token: str, refresh_token: str) -> SessionIdentity:
        """Adopt tokens delivered by an email confirmation link."""

    def sign_out(self) -> None:
        """End the current session."""

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register for auth events and return an unsubscribe callable."""


class SessionStore:
    """Single source of truth for who is signed in.

    One store holds one session for the whole process, so every HTTP client of the
    app acts as the same signed-in user. Deploy one app instance per user agent.
    """

    def __init__(
        self,
        auth_backend: AuthBackend,
        profile_loader: ProfileLoader,
        account_service: AccountService,
        init_timeout_seconds: float = 5.0,
    ) -> None:
        self.auth_backend = auth_backend
        self.profile_loader = profile_loader
        self.account_service = account_service
        self.init_timeout_seconds = init_timeout_seconds
        self._identity: SessionIdentity | None = None
        self._profile: ProfileRecord | None = None
        self._loading = True
        self._generation = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe_auth: Callable[[], None] | None = None
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SessionState:
        """Return an immutable snapshot of the session."""
        return SessionState(
            loading=self._loading, identity=self._identity, profile=self._profile
        )

    @property
    def loading(self) -> bool:
        return self._loading

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with a new snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def initialize(self) -> None:
        """Resolve the stored session and start listening for auth events."""
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()
        try:
            self._unsubscribe_auth = self.auth_backend.on_auth_state_change(
                self._on_auth_event
            )
        except BackendError:
            logger.exception("Error setting up auth listener")
        try:
            await asyncio.wait_for(
                self._resolve_current(), timeout=self.init_timeout_seconds
            )
        except TimeoutError:
            logger.warning(
                "Auth loading timeout, stopping loading state",
                extra={"timeout_seconds": self.init_timeout_seconds},
            )
            self._finish_loading()

    async def teardown(self) -> None:
        """Stop listening for auth events and drop pending resolutions."""
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()
        self._loop = None

    async def refresh(self) -> SessionState:
        """Re-read the session from the backend and reload the profile."""
        await self._resolve_current()
        return self.state

    async def sign_up(
        self,
        email: str,
        password: str,
        role: str,
        extra: dict[str, object] | None = None,
    ) -> SignUpResult:
        """Register an account, provision its rows and adopt any issued session."""
        if not email or not password:
            raise ValidationError("Email and password are required")
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError(f"Cannot sign up with role {role!r}")
        result = await asyncio.to_thread(
            self.auth_backend.sign_up, email, password, {"role": role}
        )
        await asyncio.to_thread(
            self.account_service.provision, result.identity, role, dict(extra or {})
        )
        if result.session_active:
            await self._resolve(result.identity)
        return result

    async def sign_in(self, email: str, password: str) -> SessionIdentity:
        """Sign in with a password and load the profile."""
        if not email or not password:
            raise ValidationError("Please enter both email and password")
        identity = await asyncio.to_thread(self.auth_backend.sign_in, email, password)
        await self._resolve(identity)
        return identity

    async def adopt_tokens(
        self, access_token: str, refresh_token: str
    ) -> SessionIdentity:
        """Install a session from callback tokens."""
        identity = await asyncio.to_thread(
            self.auth_backend.set_session, access_token, refresh_token
        )
        await self._resolve(identity)
        return identity

    async def sign_out(self) -> None:
        """Sign out and clear identity and profile."""
        await asyncio.to_thread(self.auth_backend.sign_out)
        await self._resolve(None)

    async def load_profile(self, user_id: UUID) -> ProfileRecord | None:
        """Fetch a profile and store it when it belongs to the current identity."""
        profile = await asyncio.to_thread(self.profile_loader.load, user_id)
        if self._identity is not None and self._identity.id == user_id:
            self._profile = profile
            self._notify()
        return profile

    async def _resolve_current(self) -> None:
        try:
            identity = await asyncio.to_thread(self.auth_backend.get_session)
        except BackendError:
            logger.exception("Error getting session")
            identity = None
        await self._resolve(identity)

    async def _resolve(self, identity: SessionIdentity | None) -> None:
        self._generation += 1
        generation = self._generation
        previous = self._identity
        self._identity = identity
        if identity is None:
            self._profile = None
            self._finish_loading()
            return
        if previous is None or previous.id != identity.id:
            self._profile = None
        profile = await asyncio.to_thread(self.profile_loader.load, identity.id)
        if generation != self._generation:
            logger.info(
                "Discarding superseded profile load",
                extra={"user_id": str(identity.id)},
            )
            return
        self._profile = profile
        self._finish_loading()

    def _finish_loading(self) -> None:
        self._loading = False
        self._notify()

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    def _on_auth_event(self, event: str, identity: SessionIdentity | None) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        logger.info("Auth state changed", extra={"event": event})
        loop.call_soon_threadsafe(self._schedule_resolve, identity)

    def _schedule_resolve(self, identity: SessionIdentity | None) -> None:
        task = asyncio.create_task(self._resolve(identity))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Session resolution failed", exc_info=exc)
