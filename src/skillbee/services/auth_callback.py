"""Email confirmation callback handling."""

import logging
from dataclasses import dataclass

from skillbee.domain.navigation import LOGIN_PATH, Decision, Redirect
from skillbee.services.landing import resolve_landing
from skillbee.services.profiles import ProfileLoader
from skillbee.services.sessions import SessionStore

logger = logging.getLogger(__name__)

VERIFICATION_FAILED_PATH = f"{LOGIN_PATH}?error=verification_failed"


@dataclass
class EmailConfirmationHandler:
    """Finish sign-up after the user follows the confirmation link."""

    session_store: SessionStore
    profile_loader: ProfileLoader

    async def handle(
        self,
        access_token: str | None,
        refresh_token: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> Decision:
        """Adopt the session, wait for the profile row and pick a destination.

        Raises ProfileSetupIncompleteError if the profile never appears.
        """
        if error or error_description:
            logger.warning(
                "Email verification failed",
                extra={"error": error, "description": error_description},
            )
            return Redirect(VERIFICATION_FAILED_PATH)
        if access_token and refresh_token:
            identity = await self.session_store.adopt_tokens(
                access_token, refresh_token
            )
        else:
            state = await self.session_store.refresh()
            identity = state.identity
        if identity is None:
            return Redirect(LOGIN_PATH)
        await self.profile_loader.complete_signup(identity)
        await self.session_store.load_profile(identity.id)
        return resolve_landing(self.session_store.state)
