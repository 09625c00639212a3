"""Shared test fixtures."""

import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from skillbee.config import Settings
from skillbee.containers import AppContainer
from skillbee.domain.bookings import Booking, Message, Wallet
from skillbee.domain.errors import AuthError, BackendError
from skillbee.domain.models import ProfileRecord, SessionIdentity, SignUpResult
from skillbee.domain.navigation import SessionState
from skillbee.domain.verification import VerificationSubmission
from skillbee.services.accounts import AccountService
from skillbee.services.auth_callback import EmailConfirmationHandler
from skillbee.services.messaging import MessageRepository, MessagingService
from skillbee.services.profiles import ProfileLoader, ProfileRepository
from skillbee.services.sessions import AuthBackend, AuthListener, SessionStore
from skillbee.services.storage import DocumentService, DocumentStorage
from skillbee.services.subscriptions import ChangeEvent, ChangeFeed, ChangeFilter
from skillbee.services.task_requests import (
    BookingRepository,
    TaskerRepository,
    TaskRequestService,
)
from skillbee.services.verification import VerificationRepository, VerificationService
from skillbee.services.wallets import WalletRepository, WalletService


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, ProfileRecord] = field(default_factory=dict)
    fail: bool = False
    fail_updates: bool = False
    gates: dict[UUID, threading.Event] = field(default_factory=dict)
    lookups: list[UUID] = field(default_factory=list)

    def add(self, profile: ProfileRecord) -> ProfileRecord:
        self.profiles[profile.id] = profile
        return profile

    def get_profile(self, user_id: UUID) -> ProfileRecord | None:
        self.lookups.append(user_id)
        gate = self.gates.get(user_id)
        if gate is not None:
            gate.wait(timeout=2)
        if self.fail:
            raise BackendError("profiles unavailable")
        return self.profiles.get(user_id)

    def list_profiles(self, user_ids: list[UUID]) -> list[ProfileRecord]:
        return [self.profiles[uid] for uid in user_ids if uid in self.profiles]

    def upsert_profile(self, user_id: UUID, fields: dict[str, object]) -> None:
        if self.fail:
            raise BackendError("profiles unavailable")
        existing = self.profiles.get(user_id) or ProfileRecord(
            id=user_id, role=str(fields.get("role", ""))
        )
        known = {k: v for k, v in fields.items() if hasattr(existing, k)}
        self.profiles[user_id] = replace(existing, **known)

    def update_profile(
        self, user_id: UUID, fields: dict[str, object]
    ) -> ProfileRecord | None:
        if self.fail or self.fail_updates:
            raise BackendError("profile update failed")
        existing = self.profiles.get(user_id)
        if existing is None:
            return None
        updated = replace(existing, **fields)
        self.profiles[user_id] = updated
        return updated


@dataclass
class FakeAuthBackend(AuthBackend):
    """Fake auth backend keeping accounts and the current session in memory."""

    accounts: dict[str, tuple[str, SessionIdentity]] = field(default_factory=dict)
    tokens: dict[tuple[str, str], SessionIdentity] = field(default_factory=dict)
    current: SessionIdentity | None = None
    confirm_email: bool = False
    fail_get_session: bool = False
    session_gate: threading.Event | None = None
    listeners: list[AuthListener] = field(default_factory=list)

    def register(
        self, email: str, password: str = "secret", role: str | None = None
    ) -> SessionIdentity:
        identity = SessionIdentity(
            id=uuid4(), email=email, metadata={"role": role} if role else {}
        )
        self.accounts[email] = (password, identity)
        return identity

    def get_session(self) -> SessionIdentity | None:
        if self.session_gate is not None:
            self.session_gate.wait(timeout=2)
        if self.fail_get_session:
            raise BackendError("auth unavailable")
        return self.current

    def sign_up(
        self, email: str, password: str, metadata: dict[str, object]
    ) -> SignUpResult:
        if email in self.accounts:
            raise AuthError("User already registered")
        identity = SessionIdentity(id=uuid4(), email=email, metadata=dict(metadata))
        self.accounts[email] = (password, identity)
        if self.confirm_email:
            return SignUpResult(identity=identity, session_active=False)
        self.current = identity
        return SignUpResult(identity=identity, session_active=True)

    def sign_in(self, email: str, password: str) -> SessionIdentity:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        self.current = account[1]
        return account[1]

    def set_session(self, access_token: str, refresh_token: str) -> SessionIdentity:
        identity = self.tokens.get((access_token, refresh_token))
        if identity is None:
            raise AuthError("Invalid tokens")
        self.current = identity
        return identity

    def sign_out(self) -> None:
        self.current = None

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def emit(self, event: str, identity: SessionIdentity | None) -> None:
        self.current = identity
        for listener in list(self.listeners):
            listener(event, identity)


@dataclass
class InMemoryWalletRepository(WalletRepository):
    """In-memory wallet repository for tests."""

    wallets: dict[UUID, Wallet] = field(default_factory=dict)
    transactions: dict[UUID, list[dict[str, object]]] = field(default_factory=dict)
    fail: bool = False

    def get_wallet(self, user_id: UUID) -> Wallet | None:
        return self.wallets.get(user_id)

    def create_wallet(self, user_id: UUID) -> None:
        if self.fail:
            raise BackendError("wallets unavailable")
        self.wallets[user_id] = Wallet(id=uuid4(), user_id=user_id, balance=0.0)

    def list_transactions(self, wallet_id: UUID, limit: int) -> list[dict[str, object]]:
        return self.transactions.get(wallet_id, [])[:limit]


@dataclass
class InMemoryVerificationRepository(VerificationRepository):
    """In-memory verification repository for tests."""

    submissions: dict[UUID, VerificationSubmission] = field(default_factory=dict)

    def get_submission(self, user_id: UUID) -> VerificationSubmission | None:
        return self.submissions.get(user_id)

    def upsert_submission(
        self, submission: VerificationSubmission
    ) -> VerificationSubmission:
        self.submissions[submission.user_id] = submission
        return submission

    def set_review(
        self,
        user_id: UUID,
        status: str,
        reviewed_by: UUID,
        rejection_reason: str | None,
    ) -> VerificationSubmission:
        updated = replace(
            self.submissions[user_id],
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=datetime.now(tz=UTC),
            rejection_reason=rejection_reason,
        )
        self.submissions[user_id] = updated
        return updated

    def list_submissions(self, status: str | None) -> list[VerificationSubmission]:
        return [
            submission
            for submission in self.submissions.values()
            if status is None or submission.status == status
        ]

    def list_statuses(self) -> list[str]:
        return [submission.status for submission in self.submissions.values()]


@dataclass
class InMemoryDocumentStorage(DocumentStorage):
    """In-memory object storage that can fail selected uploads."""

    objects: dict[str, bytes] = field(default_factory=dict)
    fail_paths_containing: set[str] = field(default_factory=set)
    fail_signing: bool = False

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if any(marker in path for marker in self.fail_paths_containing):
            raise BackendError(f"upload of {path} failed")
        self.objects[path] = content
        return path

    def create_signed_url(self, path: str, expires_in: int) -> str:
        if self.fail_signing or path not in self.objects:
            raise BackendError("Object not found")
        return f"https://storage.test/{path}?expires={expires_in}"

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.objects.pop(path, None)


@dataclass
class InMemoryBookingRepository(BookingRepository):
    """In-memory booking repository for tests."""

    bookings: dict[UUID, Booking] = field(default_factory=dict)

    def add(self, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    def get_booking(self, booking_id: UUID) -> Booking | None:
        return self.bookings.get(booking_id)

    def list_for_tasker(self, tasker_id: UUID, status: str | None) -> list[Booking]:
        return [
            b
            for b in self.bookings.values()
            if b.tasker_id == tasker_id and (status is None or b.status == status)
        ]

    def list_open(self) -> list[Booking]:
        return [
            b
            for b in self.bookings.values()
            if b.status == "pending" and b.tasker_id is None
        ]

    def list_for_participant(self, user_id: UUID) -> list[Booking]:
        return [
            b
            for b in self.bookings.values()
            if b.tasker_id is not None and user_id in {b.client_id, b.tasker_id}
        ]

    def assign(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        booking = self.bookings.get(booking_id)
        if booking is None or booking.status != "pending":
            return None
        if booking.tasker_id not in {None, tasker_id}:
            return None
        booking = replace(booking, tasker_id=tasker_id, status="assigned")
        self.bookings[booking_id] = booking
        return booking

    def release(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        booking = self.bookings.get(booking_id)
        if booking is None or booking.tasker_id != tasker_id:
            return None
        booking = replace(booking, tasker_id=None)
        self.bookings[booking_id] = booking
        return booking


@dataclass
class InMemoryTaskerRepository(TaskerRepository):
    """In-memory tasker service lists."""

    services: dict[UUID, list[str]] = field(default_factory=dict)

    def get_services_offered(self, tasker_id: UUID) -> list[str]:
        return self.services.get(tasker_id, [])


@dataclass
class InMemoryMessageRepository(MessageRepository):
    """In-memory message repository for tests."""

    messages: list[Message] = field(default_factory=list)

    def list_messages(self, booking_id: UUID) -> list[Message]:
        return [m for m in self.messages if m.booking_id == booking_id]

    def latest_message(self, booking_id: UUID) -> Message | None:
        history = self.list_messages(booking_id)
        return history[-1] if history else None

    def count_unread(self, booking_id: UUID, receiver_id: UUID) -> int:
        return sum(
            1
            for m in self.list_messages(booking_id)
            if m.receiver_id == receiver_id and not m.read
        )

    def create_message(
        self, booking_id: UUID, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        message = Message(
            id=uuid4(),
            booking_id=booking_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            read=False,
            created_at=datetime.now(tz=UTC),
        )
        self.messages.append(message)
        return message

    def mark_read(self, booking_id: UUID, receiver_id: UUID) -> None:
        self.messages = [
            replace(m, read=True)
            if m.booking_id == booking_id and m.receiver_id == receiver_id
            else m
            for m in self.messages
        ]


@dataclass
class FakeChangeFeed(ChangeFeed):
    """Change feed whose events are pushed by the test."""

    callbacks: dict[int, tuple[ChangeFilter, Callable[[ChangeEvent], None]]] = field(
        default_factory=dict
    )
    unsubscribed: int = 0

    async def listen(
        self, change_filter: ChangeFilter, callback: Callable[[ChangeEvent], None]
    ) -> Callable[[], Awaitable[None]]:
        key = len(self.callbacks) + self.unsubscribed
        self.callbacks[key] = (change_filter, callback)

        async def unsubscribe() -> None:
            self.callbacks.pop(key, None)
            self.unsubscribed += 1

        return unsubscribe

    def push(self, table: str, record: dict[str, object]) -> None:
        for change_filter, callback in list(self.callbacks.values()):
            if change_filter.table == table and str(
                record.get(change_filter.column)
            ) == str(change_filter.value):
                callback(ChangeEvent(event_type="INSERT", table=table, record=record))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="header.payload.signature",
        environment="test",
    )


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def auth_backend() -> FakeAuthBackend:
    return FakeAuthBackend()


@pytest.fixture
def wallet_repository() -> InMemoryWalletRepository:
    return InMemoryWalletRepository()


@pytest.fixture
def document_storage() -> InMemoryDocumentStorage:
    return InMemoryDocumentStorage()


@pytest.fixture
def verification_repository() -> InMemoryVerificationRepository:
    return InMemoryVerificationRepository()


@pytest.fixture
def booking_repository() -> InMemoryBookingRepository:
    return InMemoryBookingRepository()


@pytest.fixture
def change_feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def profile_loader(profile_repository: InMemoryProfileRepository) -> ProfileLoader:
    return ProfileLoader(profile_repository, poll_attempts=3, poll_interval_seconds=0)


@pytest.fixture
def session_store(
    auth_backend: FakeAuthBackend,
    profile_loader: ProfileLoader,
    profile_repository: InMemoryProfileRepository,
    wallet_repository: InMemoryWalletRepository,
) -> SessionStore:
    return SessionStore(
        auth_backend=auth_backend,
        profile_loader=profile_loader,
        account_service=AccountService(profile_repository, wallet_repository),
        init_timeout_seconds=1.0,
    )


@pytest.fixture
def document_service(document_storage: InMemoryDocumentStorage) -> DocumentService:
    return DocumentService(
        storage=document_storage,
        bucket="tasker-documents",
        max_bytes=1024,
        signed_url_ttl_seconds=60,
    )


@pytest.fixture
def verification_service(
    verification_repository: InMemoryVerificationRepository,
    profile_repository: InMemoryProfileRepository,
    document_service: DocumentService,
) -> VerificationService:
    return VerificationService(
        repository=verification_repository,
        profile_repository=profile_repository,
        documents=document_service,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session_store: SessionStore,
    profile_loader: ProfileLoader,
    verification_service: VerificationService,
    booking_repository: InMemoryBookingRepository,
    profile_repository: InMemoryProfileRepository,
    wallet_repository: InMemoryWalletRepository,
    change_feed: FakeChangeFeed,
) -> AppContainer:
    async def close_resources() -> None:
        await session_store.teardown()

    return AppContainer(
        settings=settings,
        session_store=session_store,
        profile_loader=profile_loader,
        confirmation_handler=EmailConfirmationHandler(session_store, profile_loader),
        verification_service=verification_service,
        task_request_service=TaskRequestService(
            bookings=booking_repository, taskers=InMemoryTaskerRepository()
        ),
        messaging_service=MessagingService(
            messages=InMemoryMessageRepository(),
            bookings=booking_repository,
            profiles=profile_repository,
            change_feed=change_feed,
        ),
        wallet_service=WalletService(wallet_repository),
        close_resources=close_resources,
    )


def make_identity(
    email: str = "user@example.com", **metadata: object
) -> SessionIdentity:
    return SessionIdentity(id=uuid4(), email=email, metadata=dict(metadata))


def make_profile(
    role: str, status: str | None = None, user_id: UUID | None = None
) -> ProfileRecord:
    return ProfileRecord(id=user_id or uuid4(), role=role, verification_status=status)


def signed_in(role: str, status: str | None = None) -> SessionState:
    identity = make_identity()
    return SessionState(
        loading=False,
        identity=identity,
        profile=make_profile(role, status, identity.id),
    )
