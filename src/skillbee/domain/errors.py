"""Error types shared across layers."""


class SkillbeeError(Exception):
    """Base class for application errors."""


class BackendError(SkillbeeError):
    """The hosted backend failed or could not be reached."""


class AuthError(SkillbeeError):
    """Credentials were rejected or no session could be established."""


class PermissionDeniedError(SkillbeeError):
    """The acting user is not allowed to perform the operation."""


class ValidationError(SkillbeeError):
    """Input was rejected before any backend call was made."""


class InvalidTransitionError(SkillbeeError):
    """A verification status change is not allowed from the current state."""


class DocumentUploadError(SkillbeeError):
    """One or more required document uploads failed."""

    def __init__(self, failures: dict[str, str]) -> None:
        self.failures = failures
        kinds = ", ".join(sorted(failures))
        super().__init__(f"Failed to upload required documents: {kinds}")


class ProfileSetupIncompleteError(SkillbeeError):
    """The profile row did not appear within the polling budget."""
