"""Route table and navigation resolution."""

import re
from dataclasses import dataclass

from skillbee.domain.models import ROLE_ADMIN, ROLE_CLIENT, ROLE_TASKER
from skillbee.domain.navigation import (
    ADMIN_DASHBOARD_PATH,
    DASHBOARD_PATH,
    HOME_PATH,
    LOGIN_PATH,
    ONBOARDING_PATH,
    ROOT_PATH,
    TASKER_DASHBOARD_PATH,
    Allow,
    Decision,
    NavigationRequest,
    Redirect,
    SessionState,
)
from skillbee.services.guards import (
    Guard,
    require_auth,
    require_role,
    require_verification,
    run_guards,
)
from skillbee.services.landing import resolve_landing

_PARAM = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class Route:
    """A view reachable at ``pattern`` behind an ordered guard chain."""

    pattern: str
    view: str
    guards: tuple[Guard, ...] = ()

    def match(self, path: str) -> dict[str, str] | None:
        """Return path parameters when ``path`` matches, else None."""
        regex = "^" + _PARAM.sub(r"(?P<\1>[^/]+)", self.pattern) + "/?$"
        found = re.match(regex, path)
        if found is None:
            return None
        return found.groupdict()


def _gated(pattern: str, view: str, *guards: Guard) -> Route:
    return Route(pattern, view, (require_auth, *guards))


_CLIENT = require_role(ROLE_CLIENT)
_TASKER = require_role(ROLE_TASKER)
_VERIFIED_TASKER = require_role(ROLE_TASKER, require_verification=True)
_ADMIN = require_role(ROLE_ADMIN)

ROUTES: tuple[Route, ...] = (
    Route(HOME_PATH, "home"),
    Route("/signup", "signup"),
    Route(LOGIN_PATH, "login"),
    Route("/admin/login", "admin_login"),
    Route("/auth/callback", "auth_callback"),
    _gated("/app-home", "app_home"),
    _gated(DASHBOARD_PATH, "dashboard", _CLIENT),
    _gated(TASKER_DASHBOARD_PATH, "tasker_dashboard", _VERIFIED_TASKER),
    _gated(ONBOARDING_PATH, "tasker_onboarding", _TASKER),
    _gated("/task-requests", "task_requests", _TASKER, require_verification),
    _gated("/book", "book", _CLIENT),
    _gated("/tasks", "tasks", _CLIENT),
    _gated("/profile", "profile", _CLIENT),
    _gated("/tasker-profile", "tasker_profile", _TASKER),
    _gated("/wallet", "wallet"),
    _gated("/tasker-wallet", "tasker_wallet", _TASKER, require_verification),
    _gated("/support", "support"),
    _gated("/messages", "messages"),
    _gated(ADMIN_DASHBOARD_PATH, "admin_dashboard", _ADMIN),
    _gated("/admin/review/{user_id}", "admin_review", _ADMIN),
)

_BY_PATTERN = {route.pattern: route for route in ROUTES}


def find_route(pattern: str) -> Route:
    """Return the route registered for ``pattern``."""
    return _BY_PATTERN[pattern]


def match_route(path: str) -> tuple[Route, dict[str, str]] | None:
    """Find the route serving ``path``."""
    for route in ROUTES:
        params = route.match(path)
        if params is not None:
            return route, params
    return None


def navigate(path: str, state: SessionState) -> Decision:
    """Resolve a navigation to ``path`` for the given session snapshot."""
    if path in {ROOT_PATH, ""}:
        return resolve_landing(state)
    matched = match_route(path)
    if matched is None:
        return Redirect(ROOT_PATH)
    route, params = matched
    request = NavigationRequest(path=path, params=params)
    decision = run_guards(route.guards, request, state)
    if isinstance(decision, Allow):
        return Allow(view=route.view, params=params)
    return decision
