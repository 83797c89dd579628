"""Session data models.

Provides Pydantic models for the authenticated identity and the uniform
result returned by every session operation.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"
    CUSTOMER = "customer"


STAFF_ROLES = (Role.ADMIN, Role.EMPLOYEE)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"


class SessionUser(BaseModel):
    """Identity of the logged-in user; unknown server fields are dropped."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    id: Union[int, str] = Field(..., description="User id")
    role: Role = Field(..., description="Role deciding which affordances are shown")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    phone_number: Optional[str] = Field(None, description="Phone number")

    def to_storage(self) -> str:
        return self.model_dump_json()


class IdentityUpdate(BaseModel):
    """The fields update_identity is allowed to change."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_partial(
        cls, partial: Union["IdentityUpdate", Mapping[str, Any]]
    ) -> "IdentityUpdate":
        if isinstance(partial, IdentityUpdate):
            return partial
        return cls.model_validate(dict(partial))

    def changes(self) -> Dict[str, Any]:
        """Only the fields that were actually supplied."""
        return self.model_dump(exclude_unset=True)


class AuthResult(BaseModel):
    """Uniform success/failure shape returned at the session boundary."""

    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
