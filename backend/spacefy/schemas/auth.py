"""Authentication and user schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.principal import Role


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not v or "@" not in v:
        raise ValueError("Valid email address required")
    return v


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"name": "Alice", "email": "alice@example.com", "password": "securepass"}]
        }
    )

    normalize_email = field_validator("email")(_normalize_email)


class CreateUserRequest(RegisterRequest):
    """Account created by an existing user for a business role."""
    role: Role

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v not in (Role.OWNER, Role.ADMIN, Role.STAFF):
            raise ValueError("role must be OWNER, ADMIN or STAFF")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class RoleChangeRequest(BaseModel):
    role_id: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role_id: str
    role_name: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: str
    user: UserResponse
