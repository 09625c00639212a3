"""Supabase-backed message repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors
from skillbee.domain.bookings import Message
from skillbee.domain.errors import BackendError
from skillbee.services.messaging import MessageRepository


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for ``messages``."""

    client: Client

    def list_messages(self, booking_id: UUID) -> list[Message]:
        """Return messages for a booking, oldest first."""
        with backend_errors("list_messages"):
            response = (
                self.client.table("messages")
                .select("*")
                .eq("booking_id", str(booking_id))
                .order("created_at")
                .execute()
            )
        return [_row_to_message(row) for row in response.data or []]

    def latest_message(self, booking_id: UUID) -> Message | None:
        """Return the newest message for a booking."""
        with backend_errors("latest_message"):
            response = (
                self.client.table("messages")
                .select("*")
                .eq("booking_id", str(booking_id))
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        return _row_to_message(response.data[0]) if response.data else None

    def count_unread(self, booking_id: UUID, receiver_id: UUID) -> int:
        """Count unread messages for a receiver."""
        with backend_errors("count_unread"):
            response = (
                self.client.table("messages")
                .select("id", count="exact")
                .eq("booking_id", str(booking_id))
                .eq("receiver_id", str(receiver_id))
                .eq("read", False)
                .execute()
            )
        return response.count or 0

    def create_message(
        self, booking_id: UUID, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        """Insert an unread message."""
        with backend_errors("create_message"):
            response = (
                self.client.table("messages")
                .insert(
                    {
                        "booking_id": str(booking_id),
                        "sender_id": str(sender_id),
                        "receiver_id": str(receiver_id),
                        "content": content,
                        "read": False,
                    }
                )
                .execute()
            )
        if not response.data:
            raise BackendError("Failed to send message")
        return _row_to_message(response.data[0])

    def mark_read(self, booking_id: UUID, receiver_id: UUID) -> None:
        """Mark unread messages for a receiver as read."""
        with backend_errors("mark_read"):
            self.client.table("messages").update({"read": True}).eq(
                "booking_id", str(booking_id)
            ).eq("receiver_id", str(receiver_id)).eq("read", False).execute()


def _row_to_message(row: dict[str, object]) -> Message:
    created_at = row.get("created_at")
    return Message(
        id=UUID(str(row["id"])),
        booking_id=UUID(str(row["booking_id"])),
        sender_id=UUID(str(row["sender_id"])),
        receiver_id=UUID(str(row["receiver_id"])),
        content=str(row.get("content") or ""),
        read=bool(row.get("read")),
        created_at=datetime.fromisoformat(created_at)
        if isinstance(created_at, str) and created_at
        else None,
    )
