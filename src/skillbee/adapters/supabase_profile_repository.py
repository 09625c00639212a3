"""Supabase-backed profile repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors, fetch_single
from skillbee.domain.models import ROLE_TASKER, ProfileRecord
from skillbee.services.profiles import ProfileRepository

_COLUMN_ALIASES = {"phone": "phone_number"}


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the ``users`` profile table."""

    client: Client

    def get_profile(self, user_id: UUID) -> ProfileRecord | None:
        """Return the profile row, or None when it does not exist yet."""
        with backend_errors("get_profile"):
            row = fetch_single(
                self.client.table("users").select("*").eq("id", str(user_id))
            )
            if row is None:
                return None
            services = []
            if row.get("role") == ROLE_TASKER:
                services = self._services_offered(user_id)
        return _row_to_profile(row, services)

    def list_profiles(self, user_ids: list[UUID]) -> list[ProfileRecord]:
        """Return profiles for the given ids."""
        if not user_ids:
            return []
        with backend_errors("list_profiles"):
            response = (
                self.client.table("users")
                .select("*")
                .in_("id", [str(user_id) for user_id in user_ids])
                .execute()
            )
        return [_row_to_profile(row, []) for row in response.data or []]

    def upsert_profile(self, user_id: UUID, fields: dict[str, object]) -> None:
        """Create or update a profile row."""
        with backend_errors("upsert_profile"):
            self.client.table("users").upsert(
                {"id": str(user_id), **_to_columns(fields)}
            ).execute()

    def update_profile(
        self, user_id: UUID, fields: dict[str, object]
    ) -> ProfileRecord | None:
        """Update a profile row and return it."""
        with backend_errors("update_profile"):
            response = (
                self.client.table("users")
                .update(_to_columns(fields))
                .eq("id", str(user_id))
                .execute()
            )
        if not response.data:
            return None
        return _row_to_profile(response.data[0], [])

    def _services_offered(self, user_id: UUID) -> list[str]:
        response = (
            self.client.table("taskers")
            .select("services_offered")
            .eq("tasker_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return []
        return list(response.data[0].get("services_offered") or [])


def _to_columns(fields: dict[str, object]) -> dict[str, object]:
    return {
        _COLUMN_ALIASES.get(key, key): value
        for key, value in fields.items()
        if value is not None
    }


def _row_to_profile(row: dict[str, object], services: list[str]) -> ProfileRecord:
    hourly_rate = row.get("hourly_rate")
    return ProfileRecord(
        id=UUID(str(row["id"])),
        role=str(row.get("role") or ""),
        verification_status=row.get("verification_status"),
        full_name=row.get("full_name"),
        email=row.get("email"),
        phone=row.get("phone_number") or row.get("phone"),
        bio=row.get("bio"),
        address=row.get("address"),
        avatar_url=row.get("avatar_url"),
        hourly_rate=float(hourly_rate) if hourly_rate is not None else None,
        services_offered=services,
    )
