"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import HTTPException, Request, status

from skillbee.domain.errors import AuthError
from skillbee.domain.navigation import (
    NavigationRequest,
    Placeholder,
    Redirect,
    SessionState,
    decision_payload,
)
from skillbee.services.guards import run_guards
from skillbee.services.routes import find_route

if TYPE_CHECKING:
    from skillbee.containers import AppContainer


def guarded(pattern: str) -> Callable[[Request], SessionState]:
    """Gate an endpoint behind the guard chain of the view at ``pattern``.

    Redirect decisions become 303 responses with a ``Location`` header; a
    session that is still loading yields 503.
    """
    route = find_route(pattern)

    def dependency(request: Request) -> SessionState:
        container: AppContainer = request.app.state.container
        state = container.session_store.state
        params = {key: str(value) for key, value in request.path_params.items()}
        view_path = route.pattern.format(**params) if params else route.pattern
        decision = run_guards(
            route.guards, NavigationRequest(path=view_path, params=params), state
        )
        if isinstance(decision, Placeholder):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=decision.message,
                headers={"Retry-After": "1"},
            )
        if isinstance(decision, Redirect):
            raise HTTPException(
                status_code=status.HTTP_303_SEE_OTHER,
                detail=decision_payload(decision),
                headers={"Location": decision.target},
            )
        return state

    return dependency


def current_user_id(state: SessionState) -> UUID:
    """Return the signed-in user's id from a guarded session."""
    if state.identity is None:
        raise AuthError("Not signed in")
    return state.identity.id
