"""Account provisioning performed right after sign-up."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from skillbee.domain.errors import BackendError
from skillbee.domain.models import SessionIdentity
from skillbee.services.profiles import ProfileRepository

logger = logging.getLogger(__name__)


class WalletProvisioner(Protocol):
    """Creates the empty wallet every account starts with."""

    def create_wallet(self, user_id: UUID) -> None:
        """Create a zero-balance wallet for a user."""


@dataclass
class AccountService:
    """Writes the profile and wallet rows for a new account."""

    profile_repository: ProfileRepository
    wallets: WalletProvisioner

    def provision(
        self, identity: SessionIdentity, role: str, extra: dict[str, object]
    ) -> bool:
        """Provision profile and wallet. Returns False if either write failed."""
        ok = True
        fields = {**extra, "email": identity.email, "role": role}
        try:
            self.profile_repository.upsert_profile(identity.id, fields)
        except BackendError:
            logger.exception(
                "Failed to write profile at sign-up",
                extra={"user_id": str(identity.id)},
            )
            ok = False
        try:
            self.wallets.create_wallet(identity.id)
        except BackendError:
            logger.exception(
                "Failed to create wallet at sign-up",
                extra={"user_id": str(identity.id)},
            )
            ok = False
        return ok
