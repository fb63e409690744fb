# This project was developed with assistance from AI tools.
"""Authentication schemas."""

from portal_db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated caller, injected by the auth dependency."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str = ""
    name: str = ""

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.AGENT)


class TokenPayload(BaseModel):
    """Decoded JWT claims from Keycloak."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)
