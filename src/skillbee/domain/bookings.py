"""Domain models for bookings, messages and wallets."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Booking:
    """A task posted by a client."""

    id: UUID
    client_id: UUID
    tasker_id: UUID | None
    service_type: str
    status: str
    budget: float | None = None
    location: str | None = None
    notes: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Message:
    """A chat message attached to a booking."""

    id: UUID
    booking_id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    read: bool
    created_at: datetime | None = None


@dataclass(frozen=True)
class Wallet:
    """A user's wallet balance."""

    id: UUID
    user_id: UUID
    balance: float
