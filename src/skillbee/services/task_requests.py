"""Task requests offered to, or available for, a tasker."""

import math
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from skillbee.domain.bookings import Booking

EARTH_RADIUS_KM = 6371.0


class BookingRepository(Protocol):
    """Persistence interface for bookings."""

    def get_booking(self, booking_id: UUID) -> Booking | None:
        """Return a booking by id."""

    def list_for_tasker(self, tasker_id: UUID, status: str | None) -> list[Booking]:
        """Return bookings assigned to a tasker, newest first."""

    def list_open(self) -> list[Booking]:
        """Return pending bookings with no tasker, newest first."""

    def list_for_participant(self, user_id: UUID) -> list[Booking]:
        """Return bookings with an assigned tasker where the user takes part."""

    def assign(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        """Assign a booking to a tasker and mark it assigned."""

    def release(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        """Unassign a booking offered to a tasker."""


class TaskerRepository(Protocol):
    """Persistence interface for tasker service details."""

    def get_services_offered(self, tasker_id: UUID) -> list[str]:
        """Return the service types a tasker offers."""


@dataclass
class TaskRequestService:
    """Queries and actions behind the task requests view."""

    bookings: BookingRepository
    taskers: TaskerRepository
    nearby_radius_km: float = 50.0

    def offered(self, tasker_id: UUID) -> list[Booking]:
        """Pending bookings where the client picked this tasker."""
        return self.bookings.list_for_tasker(tasker_id, status="pending")

    def available(self, tasker_id: UUID) -> list[Booking]:
        """Open bookings matching the tasker's services; all of them if none set."""
        services = set(self.taskers.get_services_offered(tasker_id))
        open_bookings = self.bookings.list_open()
        if not services:
            return open_bookings
        return [b for b in open_bookings if b.service_type in services]

    def nearby(self, latitude: float | None, longitude: float | None) -> list[Booking]:
        """Open bookings within the configured radius of a point."""
        if latitude is None or longitude is None:
            return []
        return [
            booking
            for booking in self.bookings.list_open()
            if booking.latitude is not None
            and booking.longitude is not None
            and haversine_km(latitude, longitude, booking.latitude, booking.longitude)
            <= self.nearby_radius_km
        ]

    def accept(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        return self.bookings.assign(booking_id, tasker_id)

    def decline(self, booking_id: UUID, tasker_id: UUID) -> Booking | None:
        """Return an offered booking to the open pool."""
        return self.bookings.release(booking_id, tasker_id)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
