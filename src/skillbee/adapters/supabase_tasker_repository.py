"""Supabase-backed tasker details."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors, fetch_single
from skillbee.services.task_requests import TaskerRepository


@dataclass
class SupabaseTaskerRepository(TaskerRepository):
    """Reads the ``taskers`` table."""

    client: Client

    def get_services_offered(self, tasker_id: UUID) -> list[str]:
        """Return services offered, empty when the tasker has no row."""
        with backend_errors("get_services_offered"):
            row = fetch_single(
                self.client.table("taskers")
                .select("services_offered")
                .eq("tasker_id", str(tasker_id))
            )
        if row is None:
            return []
        return list(row.get("services_offered") or [])
