"""Role, permission, grant, and override schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _permission_name(v: str) -> str:
    v = v.strip().upper()
    if not v:
        raise ValueError("Permission name cannot be empty")
    if " " in v:
        raise ValueError("Permission names use dashes, e.g. VIEW-DEVICES")
    return v


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Role name cannot be empty")
        return v


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    normalize_name = field_validator("name")(_permission_name)


class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        return _permission_name(v) if v is not None else v


class PermissionResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RolePermissionCreate(BaseModel):
    role_id: str
    permission_ids: List[str] = Field(..., min_length=1)


class RolePermissionResponse(BaseModel):
    id: str
    role_id: str
    permission_id: str
    permission: Optional[PermissionResponse] = None

    model_config = ConfigDict(from_attributes=True)


class UserPermissionCreate(BaseModel):
    user_id: str
    permission_ids: List[str] = Field(..., min_length=1)
    is_allowed: bool = True


class OverrideUpdate(BaseModel):
    """Flip ``is_allowed`` on a set of existing overrides."""
    permission_ids: List[str] = Field(..., min_length=1)
    is_allowed: bool


class OverrideDelete(BaseModel):
    """Optional subset of permissions to remove; empty removes all."""
    permission_ids: List[str] = Field(default_factory=list)


class UserPermissionResponse(BaseModel):
    id: str
    user_id: str
    permission_id: str
    is_allowed: bool
    permission: Optional[PermissionResponse] = None

    model_config = ConfigDict(from_attributes=True)


class BranchUserPermissionCreate(BaseModel):
    user_id: str
    branch_ids: List[str] = Field(..., min_length=1)
    permission_ids: List[str] = Field(..., min_length=1)
    is_allowed: bool = True


class BranchOverrideUpdate(OverrideUpdate):
    branch_id: str


class BranchOverrideDelete(BaseModel):
    branch_id: str
    permission_ids: List[str] = Field(..., min_length=1)


class BranchUserPermissionResponse(BaseModel):
    id: str
    user_id: str
    branch_id: str
    permission_id: str
    is_allowed: bool
    permission: Optional[PermissionResponse] = None

    model_config = ConfigDict(from_attributes=True)
