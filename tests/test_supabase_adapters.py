"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from types import SimpleNamespace
from uuid import uuid4

import httpx
import pytest
from postgrest.exceptions import APIError
from supabase import AuthError as SupabaseAuthError

from skillbee.adapters.supabase_auth_backend import SupabaseAuthBackend
from skillbee.adapters.supabase_booking_repository import SupabaseBookingRepository
from skillbee.adapters.supabase_change_feed import _to_event
from skillbee.adapters.supabase_document_storage import SupabaseDocumentStorage
from skillbee.adapters.supabase_errors import backend_errors
from skillbee.adapters.supabase_message_repository import SupabaseMessageRepository
from skillbee.adapters.supabase_profile_repository import SupabaseProfileRepository
from skillbee.adapters.supabase_tasker_repository import SupabaseTaskerRepository
from skillbee.adapters.supabase_verification_repository import (
    SupabaseVerificationRepository,
)
from skillbee.adapters.supabase_wallet_repository import SupabaseWalletRepository
from skillbee.domain.errors import AuthError, BackendError
from skillbee.domain.verification import VerificationSubmission


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | dict[str, object] | None
    count: int | None = None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_options: dict[str, object] = field(default_factory=dict)
    count: int | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args, **kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "select"
        self._single = False
        self.last_options = kwargs
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def upsert(self, payload, **kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = kwargs
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"is:{column}", value))
        return self

    def or_(self, expression: str) -> "FakeTable":
        self.last_filters.append(("or", expression))
        return self

    @property
    def not_(self) -> "FakeTable":
        self.last_filters.append(("not", None))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def single(self) -> "FakeTable":
        self._single = True
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        if getattr(self, "_single", False):
            self._single = False
            if len(data) != 1:
                raise APIError(
                    {
                        "message": "Cannot coerce the result to a single JSON object",
                        "code": "PGRST116",
                        "hint": None,
                        "details": "The result contains 0 rows",
                    }
                )
            return FakeResponse(data=data[0])
        return FakeResponse(data=data, count=self.count)


@dataclass
class FakeBucket:
    objects: dict[str, bytes] = field(default_factory=dict)
    options: dict[str, object] = field(default_factory=dict)

    def upload(self, path: str, content: bytes, options: dict[str, object]) -> None:
        self.objects[path] = content
        self.options = options

    def create_signed_url(self, path: str, expires_in: int) -> dict[str, str]:
        return {"signedURL": f"https://signed/{path}?e={expires_in}"}

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.objects.pop(path, None)


@dataclass
class FakeStorage:
    buckets: dict[str, FakeBucket] = field(default_factory=dict)

    def from_(self, bucket: str) -> FakeBucket:
        return self.buckets.setdefault(bucket, FakeBucket())


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    storage: FakeStorage = field(default_factory=FakeStorage)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_backend_errors_translates_client_failures() -> None:
    with pytest.raises(BackendError, match="lookup failed"):
        with backend_errors("lookup"):
            raise APIError({"message": "boom", "code": "500"})
    with pytest.raises(BackendError):
        with backend_errors("lookup"):
            raise httpx.ConnectError("offline")


def test_profile_repository_reads_tasker_services() -> None:
    client = FakeSupabaseClient()
    user_id = str(uuid4())
    client.table("users").queue(
        "select",
        [
            {
                "id": user_id,
                "role": "tasker",
                "verification_status": "pending",
                "phone_number": "0700",
                "hourly_rate": "12.5",
            }
        ],
    )
    client.table("taskers").queue("select", [{"services_offered": ["Plumbing"]}])

    profile = SupabaseProfileRepository(client).get_profile(uuid4())

    assert profile is not None
    assert str(profile.id) == user_id
    assert profile.phone == "0700"
    assert profile.hourly_rate == 12.5
    assert profile.services_offered == ["Plumbing"]


def test_profile_repository_missing_row_is_none() -> None:
    client = FakeSupabaseClient()

    assert SupabaseProfileRepository(client).get_profile(uuid4()) is None


def test_profile_repository_maps_columns_on_upsert() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()

    SupabaseProfileRepository(client).upsert_profile(
        user_id, {"role": "client", "phone": "0711", "address": None}
    )

    assert client.table("users").last_payload == {
        "id": str(user_id),
        "role": "client",
        "phone_number": "0711",
    }


def test_verification_repository_upserts_on_user_id() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    table = client.table("tasker_verifications")
    table.queue(
        "upsert",
        [
            {
                "user_id": str(user_id),
                "service_category": "Plumbing",
                "national_id_number": "A1",
                "id_document_url": "u/id.png",
                "passport_photo_url": "u/face.png",
                "status": "pending",
            }
        ],
    )

    stored = SupabaseVerificationRepository(client).upsert_submission(
        VerificationSubmission(
            user_id=user_id,
            service_category="Plumbing",
            national_id_number="A1",
            id_document_ref="u/id.png",
            passport_photo_ref="u/face.png",
            status="pending",
        )
    )

    assert table.last_options == {"on_conflict": "user_id"}
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["id_document_url"] == "u/id.png"
    assert stored.passport_photo_ref == "u/face.png"


def test_verification_repository_set_review() -> None:
    client = FakeSupabaseClient()
    user_id, admin_id = uuid4(), uuid4()
    table = client.table("tasker_verifications")
    table.queue(
        "update",
        [
            {
                "user_id": str(user_id),
                "status": "rejected",
                "rejection_reason": "Blurry",
                "reviewed_by": str(admin_id),
                "reviewed_at": "2024-05-01T10:00:00+00:00",
            }
        ],
    )

    reviewed = SupabaseVerificationRepository(client).set_review(
        user_id, "rejected", admin_id, "Blurry"
    )

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["reviewed_by"] == str(admin_id)
    assert reviewed.reviewed_by == admin_id
    assert reviewed.reviewed_at is not None


def test_verification_repository_missing_submission() -> None:
    client = FakeSupabaseClient()

    assert SupabaseVerificationRepository(client).get_submission(uuid4()) is None


def test_document_storage_upload_and_sign() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseDocumentStorage(client, "tasker-documents")

    path = storage.upload("u/id.png", b"bytes", "image/png")
    url = storage.create_signed_url(path, 60)
    storage.remove([path])

    bucket = client.storage.from_("tasker-documents")
    assert bucket.options["upsert"] == "false"
    assert url == "https://signed/u/id.png?e=60"
    assert bucket.objects == {}


def test_booking_repository_open_requests_filter_unassigned() -> None:
    client = FakeSupabaseClient()
    table = client.table("bookings")
    table.queue(
        "select",
        [
            {
                "id": str(uuid4()),
                "client_id": str(uuid4()),
                "tasker_id": None,
                "service_type": "Cleaning",
                "status": "pending",
                "latitude": -1.28,
                "longitude": 36.81,
                "created_at": "2024-05-01T10:00:00+00:00",
            }
        ],
    )

    bookings = SupabaseBookingRepository(client).list_open()

    assert ("is:tasker_id", "null") in table.last_filters
    assert bookings[0].tasker_id is None
    assert bookings[0].latitude == -1.28


def test_booking_repository_assign_only_takes_pending_open_or_offered() -> None:
    client = FakeSupabaseClient()
    table = client.table("bookings")
    booking_id, tasker_id = uuid4(), uuid4()

    assigned = SupabaseBookingRepository(client).assign(booking_id, tasker_id)

    assert assigned is None
    assert ("status", "pending") in table.last_filters
    assert ("or", f"tasker_id.is.null,tasker_id.eq.{tasker_id}") in table.last_filters


def test_message_repository_counts_unread() -> None:
    client = FakeSupabaseClient()
    table = client.table("messages")
    table.count = 3

    count = SupabaseMessageRepository(client).count_unread(uuid4(), uuid4())

    assert count == 3
    assert table.last_options == {"count": "exact"}
    assert ("read", False) in table.last_filters


def test_wallet_repository_reads_wallet() -> None:
    client = FakeSupabaseClient()
    wallet_id, user_id = uuid4(), uuid4()
    client.table("wallets").queue(
        "select",
        [{"wallet_id": str(wallet_id), "user_id": str(user_id), "balance": "150"}],
    )

    wallet = SupabaseWalletRepository(client).get_wallet(user_id)

    assert wallet is not None
    assert wallet.id == wallet_id
    assert wallet.balance == 150.0


def test_tasker_repository_without_row() -> None:
    client = FakeSupabaseClient()

    assert SupabaseTaskerRepository(client).get_services_offered(uuid4()) == []


def test_auth_backend_maps_rejected_credentials() -> None:
    def sign_in_with_password(_credentials):  # type: ignore[no-untyped-def]
        raise SupabaseAuthError("Invalid login credentials", None)

    client = SimpleNamespace(
        auth=SimpleNamespace(sign_in_with_password=sign_in_with_password)
    )

    with pytest.raises(AuthError):
        backend = SupabaseAuthBackend(client)  # type: ignore[arg-type]
        backend.sign_in("a@example.com", "bad")


def test_auth_backend_reads_session_identity() -> None:
    user_id = uuid4()
    user = SimpleNamespace(
        id=str(user_id), email="a@example.com", user_metadata={"role": "tasker"}
    )
    client = SimpleNamespace(
        auth=SimpleNamespace(get_session=lambda: SimpleNamespace(user=user))
    )

    identity = SupabaseAuthBackend(client).get_session()  # type: ignore[arg-type]

    assert identity is not None
    assert identity.id == user_id
    assert identity.metadata == {"role": "tasker"}


def test_change_event_from_realtime_payload() -> None:
    payload = {
        "data": {
            "type": "INSERT",
            "table": "messages",
            "record": {"content": "hi"},
        }
    }

    event = _to_event(payload, "messages")

    assert event.event_type == "INSERT"
    assert event.record == {"content": "hi"}
    assert event.old_record == {}


def test_auth_backend_translates_transport_failures() -> None:
    def offline(*_args):  # type: ignore[no-untyped-def]
        raise httpx.ConnectError("down")

    client = SimpleNamespace(
        auth=SimpleNamespace(
            get_session=offline,
            sign_in_with_password=offline,
            set_session=offline,
            sign_out=offline,
        )
    )
    backend = SupabaseAuthBackend(client)  # type: ignore[arg-type]

    with pytest.raises(BackendError, match="get_session failed"):
        backend.get_session()
    with pytest.raises(BackendError, match="unreachable"):
        backend.sign_in("a@example.com", "secret")
    with pytest.raises(BackendError, match="unreachable"):
        backend.set_session("access", "refresh")
    with pytest.raises(BackendError, match="sign_out failed"):
        backend.sign_out()
