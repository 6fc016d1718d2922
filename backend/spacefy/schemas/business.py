"""Business, branch, staff profile, device, and space schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.business import DeviceType, SpaceType


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class BusinessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class BusinessResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BranchCreate(BaseModel):
    business_id: str
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)


class BranchResponse(BaseModel):
    id: str
    business_id: str
    name: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StaffProfileCreate(BaseModel):
    user_id: str
    branch_id: str
    position: Optional[str] = Field(None, max_length=100)


class StaffProfileResponse(BaseModel):
    id: str
    user_id: str
    branch_id: str
    position: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeviceCreate(BaseModel):
    branch_id: str
    type: DeviceType
    custom_type_label: Optional[str] = Field(None, max_length=100)
    hourly_price: float = Field(..., ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def check_custom_label(self) -> "DeviceCreate":
        if self.type == DeviceType.OTHER and not (self.custom_type_label or "").strip():
            raise ValueError("custom_type_label is required when type is OTHER")
        if self.type != DeviceType.OTHER:
            self.custom_type_label = None
        return self


class DeviceUpdate(BaseModel):
    type: Optional[DeviceType] = None
    custom_type_label: Optional[str] = Field(None, max_length=100)
    hourly_price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DeviceResponse(BaseModel):
    id: str
    branch_id: str
    type: DeviceType
    custom_type_label: Optional[str] = None
    hourly_price: float
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SpaceCreate(BaseModel):
    branch_id: str
    name: str = Field(..., min_length=1, max_length=255)
    type: SpaceType
    capacity: int = Field(..., ge=1)
    custom_type_label: Optional[str] = Field(None, max_length=100)
    is_active: bool = True

    @model_validator(mode="after")
    def check_custom_label(self) -> "SpaceCreate":
        if self.custom_type_label and self.type != SpaceType.OTHER:
            raise ValueError("custom_type_label can only be set when type is OTHER")
        return self


class SpaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[SpaceType] = None
    capacity: Optional[int] = Field(None, ge=1)
    custom_type_label: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "SpaceUpdate":
        if not self.model_fields_set:
            raise ValueError("No valid fields to update")
        return self


class SpaceResponse(BaseModel):
    id: str
    branch_id: str
    name: str
    type: SpaceType
    custom_type_label: Optional[str] = None
    capacity: int
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
