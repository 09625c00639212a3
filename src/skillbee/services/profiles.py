"""Profile lookup and first-login normalisation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from skillbee.domain.errors import BackendError, ProfileSetupIncompleteError
from skillbee.domain.models import (
    ROLE_TASKER,
    ROLES,
    STATUS_PENDING,
    ProfileRecord,
    SessionIdentity,
)

logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for profile rows."""

    def get_profile(self, user_id: UUID) -> ProfileRecord | None:
        """Return the profile for a user, or None when no row exists."""

    def list_profiles(self, user_ids: list[UUID]) -> list[ProfileRecord]:
        """Return the profiles that exist for the given ids."""

    def upsert_profile(self, user_id: UUID, fields: dict[str, object]) -> None:
        """Create or update the profile row for a user."""

    def update_profile(
        self, user_id: UUID, fields: dict[str, object]
    ) -> ProfileRecord | None:
        """Update a profile row and return the new state."""


@dataclass
class ProfileLoader:
    """Translate session identities into profile records."""

    repository: ProfileRepository
    poll_attempts: int = 10
    poll_interval_seconds: float = 0.3

    def load(self, user_id: UUID) -> ProfileRecord | None:
        """Return the profile for a user, or None on any lookup failure."""
        try:
            profile = self.repository.get_profile(user_id)
        except BackendError:
            logger.exception("Error loading profile", extra={"user_id": str(user_id)})
            return None
        if profile is None:
            logger.info("No profile row yet", extra={"user_id": str(user_id)})
            return None
        if profile.role not in ROLES:
            logger.warning(
                "Ignoring profile with unknown role",
                extra={"user_id": str(user_id), "role": profile.role},
            )
            return None
        return profile

    async def wait_for_profile(self, user_id: UUID) -> ProfileRecord:
        """Poll until the trigger-created profile row exists.

        Raises ProfileSetupIncompleteError when the attempt budget runs out.
        Backend failures other than a missing row are raised immediately.
        """
        for attempt in range(1, self.poll_attempts + 1):
            profile = await asyncio.to_thread(self.repository.get_profile, user_id)
            if profile is not None:
                return profile
            logger.info(
                "Profile row not created yet",
                extra={"user_id": str(user_id), "attempt": attempt},
            )
            if attempt < self.poll_attempts:
                await asyncio.sleep(self.poll_interval_seconds)
        raise ProfileSetupIncompleteError(
            f"Profile for {user_id} was not created after {self.poll_attempts} attempts"
        )

    async def complete_signup(self, identity: SessionIdentity) -> ProfileRecord:
        """Wait for the profile row and apply the role chosen at sign-up."""
        profile = await self.wait_for_profile(identity.id)
        if identity.metadata.get("role") != ROLE_TASKER:
            return profile
        if profile.is_tasker and profile.verification_status is not None:
            # Already onboarded; leave review outcomes alone.
            return profile
        updated = await asyncio.to_thread(
            self.repository.update_profile,
            identity.id,
            {"role": ROLE_TASKER, "verification_status": STATUS_PENDING},
        )
        return updated or profile
