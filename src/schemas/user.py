"""User schema definitions.

Request bodies keep every field optional so that missing or malformed input
is reported by the managers with a domain `ValidationError` instead of the
framework's generic validation response.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import CamelModel


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = Field(default=None, description="'citizen' (default) or 'admin'")
    name: Optional[str] = None
    phone: Optional[str] = None
    admin_token: Optional[str] = Field(
        default=None,
        description="Required for admin registration when ADMIN_REGISTRATION_TOKEN is set",
    )


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    """Self-service profile update. Only fields that are sent are changed."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UpdateUserRequest(UpdateProfileRequest):
    """User update through /users/{id}; role and isActive are admin-only."""

    role: Optional[str] = None
    is_active: Optional[bool] = None


class UpdatePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class UserPublic(CamelModel):
    """User record as returned by the API; never carries the password hash."""

    id: int
    email: str
    role: str
    name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class OwnerSummary(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str


class LoginData(CamelModel):
    user: UserPublic
    token: str


class Identity(CamelModel):
    """Caller identity attached to a request after token verification."""

    id: int
    email: str
    role: str
