"""Destination for the application root."""

from skillbee.domain.models import ROLE_ADMIN
from skillbee.domain.navigation import (
    ADMIN_DASHBOARD_PATH,
    DASHBOARD_PATH,
    ONBOARDING_PATH,
    TASKER_DASHBOARD_PATH,
    Allow,
    Decision,
    Placeholder,
    Redirect,
    SessionState,
)

PUBLIC_LANDING_VIEW = "home"


def resolve_landing(state: SessionState) -> Decision:
    """Map role and verification status to a destination."""
    if state.loading:
        return Placeholder()
    profile = state.profile
    if state.identity is None or profile is None:
        return Allow(view=PUBLIC_LANDING_VIEW)
    if profile.role == ROLE_ADMIN:
        return Redirect(ADMIN_DASHBOARD_PATH)
    if profile.is_tasker:
        if not profile.is_verified:
            return Redirect(ONBOARDING_PATH)
        return Redirect(TASKER_DASHBOARD_PATH)
    return Redirect(DASHBOARD_PATH)
