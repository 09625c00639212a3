"""Request bodies for the HTTP API."""

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    """Account registration payload."""

    email: str
    password: str
    role: str = "client"
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None


class LoginRequest(BaseModel):
    """Password sign-in payload."""

    email: str
    password: str
    redirect_to: str | None = None


class CallbackRequest(BaseModel):
    """Parameters from the email confirmation redirect."""

    access_token: str | None = None
    refresh_token: str | None = None
    error: str | None = None
    error_description: str | None = None


class RejectRequest(BaseModel):
    """Admin rejection payload."""

    reason: str = ""


class MessageRequest(BaseModel):
    """Outgoing chat message."""

    content: str = Field(default="", max_length=4000)
