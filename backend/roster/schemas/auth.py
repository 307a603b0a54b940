from datetime import datetime

from pydantic import ConfigDict, Field

from roster.schemas.base import CamelModel


class IdentityAssertion(CamelModel):
    """Claims handed over by the client after federated sign-in."""

    display_name: str | None = Field(None, max_length=100)
    email: str = Field(..., max_length=255)
    # Presence is checked by IdentityService so a missing id is an InvalidAssertion
    provider_subject_id: str | None = Field(None, max_length=255)
    id_token: str | None = Field(
        None, description="Provider ID token (required when OIDC verification is configured)"
    )


class UserSummary(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class LoginResponse(CamelModel):
    session_token: str = Field(..., description="Opaque bearer token for API authentication")
    user: UserSummary
    is_new_user: bool


class SessionUserResponse(UserSummary):
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class AuthStatusResponse(CamelModel):
    configured: bool
    mode: str
    error: str | None = None
