"""Row-change subscriptions exposed as async channels."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeFilter:
    """Rows of ``table`` whose ``column`` equals ``value``."""

    table: str
    column: str
    value: str
    event: str = "*"
    schema: str = "public"

    def as_postgrest(self) -> str:
        return f"{self.column}=eq.{self.value}"


@dataclass(frozen=True)
class ChangeEvent:
    """A single row change pushed by the backend."""

    event_type: str
    table: str
    record: dict[str, object] = field(default_factory=dict)
    old_record: dict[str, object] = field(default_factory=dict)


class ChangeFeed(Protocol):
    """Backend primitive that pushes row changes to a callback."""

    async def listen(
        self, change_filter: ChangeFilter, callback: Callable[[ChangeEvent], None]
    ) -> Callable[[], Awaitable[None]]:
        """Start delivering matching events and return an async unsubscribe."""


class Subscription:
    """Cancellable handle over a change feed.

    Iterate with ``async for`` to receive events. Leaving an ``async with``
    block, or calling ``unsubscribe``, stops delivery and ends iteration.
    """

    _CLOSED = object()

    def __init__(self, change_filter: ChangeFilter) -> None:
        self.change_filter = change_filter
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._unlisten: Callable[[], Awaitable[None]] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: ChangeEvent) -> None:
        """Queue an event unless the subscription is closed."""
        if self._closed:
            logger.debug(
                "Dropping event for closed subscription",
                extra={"table": self.change_filter.table},
            )
            return
        self._queue.put_nowait(event)

    async def unsubscribe(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSED)
        if self._unlisten is not None:
            unlisten, self._unlisten = self._unlisten, None
            await unlisten()

    async def next_event(self, timeout: float | None = None) -> ChangeEvent | None:
        """Wait for the next event; None once closed or on timeout."""
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except TimeoutError:
            return None
        if item is self._CLOSED:
            self._queue.put_nowait(self._CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.unsubscribe()


async def subscribe(feed: ChangeFeed, change_filter: ChangeFilter) -> Subscription:
    """Open a subscription for ``change_filter`` on ``feed``."""
    subscription = Subscription(change_filter)
    subscription._unlisten = await feed.listen(change_filter, subscription.deliver)
    return subscription
