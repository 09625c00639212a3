"""Route guards.

A guard looks at a navigation request and a session snapshot and returns a
decision. Guards are composed into ordered chains; the first decision that is
not ``Allow`` ends the chain.
"""

from collections.abc import Callable, Iterable

from skillbee.domain.navigation import (
    LOGIN_PATH,
    ONBOARDING_PATH,
    ROOT_PATH,
    Allow,
    Decision,
    NavigationRequest,
    Placeholder,
    Redirect,
    SessionState,
)

Guard = Callable[[NavigationRequest, SessionState], Decision]


def require_auth(request: NavigationRequest, state: SessionState) -> Decision:
    """Send anonymous users to sign-in, remembering where they were headed."""
    if state.loading:
        return Placeholder()
    if state.identity is None:
        return Redirect(LOGIN_PATH, from_path=request.path)
    return Allow()


def require_role(*allowed: str, require_verification: bool = False) -> Guard:
    """Build a guard admitting only profiles whose role is in ``allowed``.

    A missing profile is let through. Disallowed roles go back to the root so
    the landing gate picks their destination.
    """
    allowed_roles = frozenset(allowed)

    def guard(request: NavigationRequest, state: SessionState) -> Decision:
        if state.loading:
            return Placeholder()
        if state.identity is None:
            return Redirect(LOGIN_PATH, from_path=request.path)
        profile = state.profile
        if profile is None:
            return Allow()
        if profile.role not in allowed_roles:
            return Redirect(ROOT_PATH)
        if require_verification and _needs_onboarding(state):
            return Redirect(ONBOARDING_PATH)
        return Allow()

    guard.__name__ = f"require_role({', '.join(sorted(allowed_roles))})"
    return guard


def require_verification(request: NavigationRequest, state: SessionState) -> Decision:
    """Keep unverified taskers on the onboarding view."""
    if state.loading:
        return Placeholder()
    if state.identity is None:
        return Redirect(LOGIN_PATH, from_path=request.path)
    if _needs_onboarding(state):
        return Redirect(ONBOARDING_PATH)
    return Allow()


def run_guards(
    guards: Iterable[Guard], request: NavigationRequest, state: SessionState
) -> Decision:
    """Apply guards in order and return the first blocking decision."""
    for guard in guards:
        decision = guard(request, state)
        if not isinstance(decision, Allow):
            return decision
    return Allow()


def _needs_onboarding(state: SessionState) -> bool:
    profile = state.profile
    return profile is not None and profile.is_tasker and not profile.is_verified
