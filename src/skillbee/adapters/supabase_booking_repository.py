"""Supabase-backed booking repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors
from skillbee.domain.bookings import Booking
from skillbee.services.task_requests import BookingRepository


@dataclass
class SupabaseBookingRepository(BookingRepository):
    """Supabase implementation for ``bookings``."""

    client: Client

    def get_booking(self, booking_id: UUID) -> Booking | None:
        """Return a booking by id."""
        with backend_errors("get_booking"):
            response = (
                self.client.table("bookings")
                .select("*")
                .eq("id", str(booking_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _row_to_booking(response.data[0])

    def list_for_tasker(self, tasker_id: UUID, status: str | None) -> list[Booking]:
        """Return bookings assigned to a tasker."""
        with backend_errors("list_for_tasker"):
            query = self.client.table("bookings").select("*").eq(
                "tasker_id", str(tasker_id)
            )
            if status is not None:
                query = query.eq("status", status)
            response = query.order("created_at", desc=True).execute()
        return [_row_to_booking(row) for row in response.data or []]

    def list_open(self) -> list[Booking]:
        """Return pending bookings that nobody has taken."""
        with backend_errors("list_open"):
            response = (
                self.client.table("bookings")
                .select("*")
                .eq("status", "pending")
                .is_("tasker_id", "null")
                .order("created_at", desc=True)
                .execute()
            )
        return [_row_to_booking(row) for row in response.data or []]

    def list_for_participant(self, user_id: UUID) -> list[Booking]:
        """Return assigned bookings where the user is client or tasker."""
        with backend_errors("list_for_participant"):
            response = (
                self.client.table("bookings")
                .select("*")
                .or_(f"client_id.eq.{user_id},tasker_id.eq.{user_id}")
                .not_.is_("tasker_id", "null")
                .order("created_at", desc=True)
                .execute()
            )
        return [_row_to_booking(row) for row in response.data or []]

    def assign(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        """Assign a pending booking that is open or already offered to the tasker."""
        with backend_errors("assign"):
            response = (
                self.client.table("bookings")
                .update({"tasker_id": str(tasker_id), "status": "assigned"})
                .eq("id", str(booking_id))
                .eq("status", "pending")
                .or_(f"tasker_id.is.null,tasker_id.eq.{tasker_id}")
                .execute()
            )
        return _row_to_booking(response.data[0]) if response.data else None

    def release(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        """Return a booking offered to this tasker to the open pool."""
        with backend_errors("release"):
            response = (
                self.client.table("bookings")
                .update({"tasker_id": None})
                .eq("id", str(booking_id))
                .eq("tasker_id", str(tasker_id))
                .execute()
            )
        return _row_to_booking(response.data[0]) if response.data else None


def _row_to_booking(row: dict[str, object]) -> Booking:
    tasker_id = row.get("tasker_id")
    created_at = row.get("created_at")
    return Booking(
        id=UUID(str(row["id"])),
        client_id=UUID(str(row["client_id"])),
        tasker_id=UUID(str(tasker_id)) if tasker_id else None,
        service_type=str(row.get("service_type") or ""),
        status=str(row.get("status") or "pending"),
        budget=_as_float(row.get("budget")),
        location=row.get("location"),
        notes=row.get("notes"),
        latitude=_as_float(row.get("latitude")),
        longitude=_as_float(row.get("longitude")),
        created_at=datetime.fromisoformat(created_at)
        if isinstance(created_at, str) and created_at
        else None,
    )


def _as_float(value: object) -> float | None:
    return float(value) if value is not None else None
