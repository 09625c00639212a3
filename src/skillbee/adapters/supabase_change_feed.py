"""Supabase Realtime change feed."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from supabase import AsyncClient, acreate_client

from skillbee.services.subscriptions import ChangeEvent, ChangeFeed, ChangeFilter

logger = logging.getLogger(__name__)


@dataclass
class SupabaseChangeFeed(ChangeFeed):
    """Postgres change subscriptions over Supabase Realtime."""

    supabase_url: str
    supabase_key: str
    _client: AsyncClient | None = field(default=None, init=False, repr=False)

    async def listen(
        self, change_filter: ChangeFilter, callback: Callable[[ChangeEvent], None]
    ) -> Callable[[], Awaitable[None]]:
        """Join a channel for the filter and forward row changes."""
        client = await self._get_client()
        channel = client.channel(
            f"{change_filter.table}:{change_filter.as_postgrest()}"
        )

        def handle(payload: dict[str, object]) -> None:
            callback(_to_event(payload, change_filter.table))

        await channel.on_postgres_changes(
            change_filter.event,
            callback=handle,
            table=change_filter.table,
            schema=change_filter.schema,
            filter=change_filter.as_postgrest(),
        ).subscribe()
        logger.info(
            "Subscribed to changes",
            extra={
                "table": change_filter.table,
                "filter": change_filter.as_postgrest(),
            },
        )

        async def unsubscribe() -> None:
            await client.remove_channel(channel)

        return unsubscribe

    async def close(self) -> None:
        """Leave all channels."""
        if self._client is not None:
            await self._client.remove_all_channels()
            self._client = None

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await acreate_client(self.supabase_url, self.supabase_key)
        return self._client


def _to_event(payload: dict[str, object], table: str) -> ChangeEvent:
    data = payload.get("data", payload)
    if not isinstance(data, dict):
        data = {}
    return ChangeEvent(
        event_type=str(data.get("type") or data.get("eventType") or ""),
        table=str(data.get("table") or table),
        record=dict(data.get("record") or data.get("new") or {}),
        old_record=dict(data.get("old_record") or data.get("old") or {}),
    )
