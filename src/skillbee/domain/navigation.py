"""Navigation requests and guard decisions."""

from dataclasses import dataclass, field

from skillbee.domain.models import ProfileRecord, SessionIdentity

ROOT_PATH = "/"
HOME_PATH = "/home"
LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
TASKER_DASHBOARD_PATH = "/tasker-dashboard"
ONBOARDING_PATH = "/tasker-onboarding"
ADMIN_DASHBOARD_PATH = "/admin/dashboard"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session store at a point in time."""

    loading: bool
    identity: SessionIdentity | None = None
    profile: ProfileRecord | None = None


@dataclass(frozen=True)
class NavigationRequest:
    """A request to show the view at ``path``."""

    path: str
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Allow:
    """Render the requested view."""

    view: str | None = None
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Redirect:
    """Navigate elsewhere, optionally remembering where the user came from."""

    target: str
    from_path: str | None = None


@dataclass(frozen=True)
class Placeholder:
    """Session is still resolving; show a loading state and do not navigate."""

    message: str = "Loading..."


Decision = Allow | Redirect | Placeholder


def decision_payload(decision: Decision) -> dict[str, object]:
    """Serialize a decision for API responses."""
    if isinstance(decision, Redirect):
        payload: dict[str, object] = {"action": "redirect", "location": decision.target}
        if decision.from_path:
            payload["from"] = decision.from_path
        return payload
    if isinstance(decision, Placeholder):
        return {"action": "placeholder", "message": decision.message}
    return {"action": "render", "view": decision.view, "params": decision.params}
