"""Wallet endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from skillbee.api.dependencies import current_user_id, guarded
from skillbee.domain.navigation import SessionState  # noqa: TC001

if TYPE_CHECKING:
    from skillbee.containers import AppContainer

router = APIRouter(tags=["wallet"])


@router.get("/wallet/summary")
async def wallet_summary(
    request: Request,
    limit: int = 50,
    state: SessionState = Depends(guarded("/wallet")),
) -> dict[str, object]:
    """Return the balance and recent transactions of the signed-in user."""
    container: AppContainer = request.app.state.container
    return container.wallet_service.overview(current_user_id(state), limit)
