from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for everything that crosses the API boundary.
    Python code uses snake_case; JSON uses camelCase.
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SignupRequest(BaseModel):
    """
    Sign-up payload.

    Fields are optional here so that missing values reach the gateway,
    which owns validation and its error messages.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class SigninRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(CamelModel):
    """
    Safe user representation.

    Critical: Never include password_hash in any response.
    """
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    tenant_id: Optional[str] = None
    onboarding_completed: bool = False
    email_verified: bool = False

    @computed_field(alias="needsOnboarding")
    @property
    def needs_onboarding(self) -> bool:
        # Onboarding is done only once it is marked complete and a tenant is set
        return not self.onboarding_completed or not self.tenant_id


class UserCredentials(BaseModel):
    """Public projection plus the stored hash. Never leaves the gateway."""
    user: UserPublic
    password_hash: Optional[str] = None


class SessionInfo(CamelModel):
    id: str
    session_token: str
    expires: datetime

    @field_serializer("expires", when_used="json")
    def _expires_as_utc(self, value: datetime) -> str:
        # Stored naive in UTC; clients need the offset to read it correctly
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SessionWithUser(CamelModel):
    session: SessionInfo
    user: UserPublic


class SignUpResponse(CamelModel):
    success: bool = True
    user: UserPublic


class SignInResponse(CamelModel):
    success: bool = True
    session: SessionInfo
    user: UserPublic


class SignOutResponse(CamelModel):
    success: bool = True
    message: str = "Signed out successfully"


class SessionResponse(CamelModel):
    session: Optional[SessionInfo] = None
    user: Optional[UserPublic] = None


class MeResponse(CamelModel):
    user: UserPublic


class OnboardingStatusResponse(CamelModel):
    needs_onboarding: bool
    onboarding_completed: bool
    tenant_id: Optional[str] = None
