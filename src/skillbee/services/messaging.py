"""Booking-scoped messaging between clients and taskers."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from skillbee.domain.bookings import Message
from skillbee.domain.errors import PermissionDeniedError, ValidationError
from skillbee.services.profiles import ProfileRepository
from skillbee.services.subscriptions import (
    ChangeFeed,
    ChangeFilter,
    Subscription,
    subscribe,
)
from skillbee.services.task_requests import BookingRepository


class MessageRepository(Protocol):
    """Persistence interface for messages."""

    def list_messages(self, booking_id: UUID) -> list[Message]:
        """Return a booking's messages, oldest first."""

    def latest_message(self, booking_id: UUID) -> Message | None:
        """Return the newest message for a booking."""

    def count_unread(self, booking_id: UUID, receiver_id: UUID) -> int:
        """Count unread messages addressed to a user."""

    def create_message(
        self, booking_id: UUID, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        """Insert a message and return it."""

    def mark_read(self, booking_id: UUID, receiver_id: UUID) -> None:
        """Mark a user's unread messages in a booking as read."""


@dataclass
class MessagingService:
    """Conversations, history and live updates for bookings."""

    messages: MessageRepository
    bookings: BookingRepository
    profiles: ProfileRepository
    change_feed: ChangeFeed

    def conversations(self, user_id: UUID) -> list[dict[str, object]]:
        """Return one entry per booking with its counterpart and unread count."""
        bookings = self.bookings.list_for_participant(user_id)
        others = {
            b.tasker_id if b.client_id == user_id else b.client_id for b in bookings
        }
        names = {
            profile.id: profile.full_name
            for profile in self.profiles.list_profiles([o for o in others if o])
        }
        result = []
        for booking in bookings:
            other_id = (
                booking.tasker_id if booking.client_id == user_id else booking.client_id
            )
            latest = self.messages.latest_message(booking.id)
            result.append(
                {
                    "booking_id": str(booking.id),
                    "service_type": booking.service_type,
                    "status": booking.status,
                    "other_user": {
                        "id": str(other_id) if other_id else None,
                        "full_name": names.get(other_id, "Unknown User"),
                    },
                    "latest_message": latest.content if latest else None,
                    "unread_count": self.messages.count_unread(booking.id, user_id),
                }
            )
        return result

    def history(self, booking_id: UUID, user_id: UUID) -> list[Message]:
        self._require_participant(booking_id, user_id)
        return self.messages.list_messages(booking_id)

    def send(self, booking_id: UUID, sender_id: UUID, content: str) -> Message:
        """Send a message to the other participant of a booking."""
        cleaned = (content or "").strip()
        if not cleaned:
            raise ValidationError("Message content cannot be empty")
        receiver_id = self._require_participant(booking_id, sender_id)
        return self.messages.create_message(booking_id, sender_id, receiver_id, cleaned)

    def mark_read(self, booking_id: UUID, user_id: UUID) -> None:
        self._require_participant(booking_id, user_id)
        self.messages.mark_read(booking_id, user_id)

    async def watch(self, booking_id: UUID, user_id: UUID) -> Subscription:
        """Subscribe to new and updated messages for a booking."""
        self._require_participant(booking_id, user_id)
        return await subscribe(
            self.change_feed,
            ChangeFilter(table="messages", column="booking_id", value=str(booking_id)),
        )

    def _require_participant(self, booking_id: UUID, user_id: UUID) -> UUID:
        """Return the counterpart's id, or raise if the user is not a participant."""
        booking = self.bookings.get_booking(booking_id)
        if booking is None or booking.tasker_id is None:
            raise PermissionDeniedError("Conversation not available")
        if booking.client_id == user_id:
            return booking.tasker_id
        if booking.tasker_id == user_id:
            return booking.client_id
        raise PermissionDeniedError("Not a participant in this booking")
