"""Domain models for accounts and sessions."""

from dataclasses import dataclass, field
from uuid import UUID

ROLE_CLIENT = "client"
ROLE_TASKER = "tasker"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_CLIENT, ROLE_TASKER, ROLE_ADMIN})
SELF_SERVICE_ROLES = frozenset({ROLE_CLIENT, ROLE_TASKER})

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
VERIFICATION_STATUSES = frozenset({STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED})


@dataclass(frozen=True)
class SessionIdentity:
    """Authenticated identity issued by the auth backend."""

    id: UUID
    email: str | None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a sign-up call.

    ``session_active`` is False when the backend requires email confirmation
    before issuing a session.
    """

    identity: SessionIdentity
    session_active: bool


@dataclass(frozen=True)
class ProfileRecord:
    """Profile row for an identity."""

    id: UUID
    role: str
    verification_status: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    bio: str | None = None
    address: str | None = None
    avatar_url: str | None = None
    hourly_rate: float | None = None
    services_offered: list[str] = field(default_factory=list)

    @property
    def is_tasker(self) -> bool:
        return self.role == ROLE_TASKER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_verified(self) -> bool:
        """True for approved taskers; verification never applies to other roles."""
        return self.is_tasker and self.verification_status == STATUS_APPROVED
