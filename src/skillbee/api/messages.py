"""Booking conversation endpoints."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from skillbee.api.dependencies import current_user_id, guarded
from skillbee.api.models import MessageRequest
from skillbee.domain.navigation import SessionState  # noqa: TC001

if TYPE_CHECKING:
    from skillbee.containers import AppContainer
    from skillbee.domain.bookings import Message
    from skillbee.services.subscriptions import Subscription

router = APIRouter(prefix="/messages", tags=["messages"])

messages_guard = guarded("/messages")
KEEPALIVE_SECONDS = 15.0


@router.get("")
async def list_conversations(
    request: Request, state: SessionState = Depends(messages_guard)
) -> dict[str, object]:
    """Return the caller's conversations."""
    container: AppContainer = request.app.state.container
    return {
        "conversations": container.messaging_service.conversations(
            current_user_id(state)
        )
    }


@router.get("/{booking_id}")
async def conversation_history(
    booking_id: UUID, request: Request, state: SessionState = Depends(messages_guard)
) -> dict[str, object]:
    """Return messages for a booking, oldest first."""
    container: AppContainer = request.app.state.container
    messages = container.messaging_service.history(booking_id, current_user_id(state))
    return {"messages": [serialize_message(message) for message in messages]}


@router.post("/{booking_id}")
async def send_message(
    booking_id: UUID,
    body: MessageRequest,
    request: Request,
    state: SessionState = Depends(messages_guard),
) -> dict[str, object]:
    """Send a message to the other participant."""
    container: AppContainer = request.app.state.container
    message = container.messaging_service.send(
        booking_id, current_user_id(state), body.content
    )
    return {"message": serialize_message(message)}


@router.post("/{booking_id}/read")
async def mark_read(
    booking_id: UUID, request: Request, state: SessionState = Depends(messages_guard)
) -> dict[str, str]:
    """Mark messages addressed to the caller as read."""
    container: AppContainer = request.app.state.container
    container.messaging_service.mark_read(booking_id, current_user_id(state))
    return {"status": "ok"}


@router.get("/{booking_id}/events")
async def message_events(
    booking_id: UUID, request: Request, state: SessionState = Depends(messages_guard)
) -> StreamingResponse:
    """Stream message changes for a booking as server-sent events."""
    container: AppContainer = request.app.state.container
    subscription = await container.messaging_service.watch(
        booking_id, current_user_id(state)
    )
    return StreamingResponse(
        _event_stream(subscription, request), media_type="text/event-stream"
    )


async def _event_stream(
    subscription: Subscription, request: Request
) -> AsyncIterator[str]:
    async with subscription:
        while not await request.is_disconnected():
            event = await subscription.next_event(timeout=KEEPALIVE_SECONDS)
            if event is None:
                if subscription.closed:
                    break
                yield ": keepalive\n\n"
                continue
            payload = {"type": event.event_type, "record": event.record}
            yield f"event: message\ndata: {json.dumps(payload, default=str)}\n\n"


def serialize_message(message: Message) -> dict[str, object]:
    """Serialize a chat message."""
    return {
        "id": str(message.id),
        "booking_id": str(message.booking_id),
        "sender_id": str(message.sender_id),
        "receiver_id": str(message.receiver_id),
        "content": message.content,
        "read": message.read,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
