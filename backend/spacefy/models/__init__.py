"""Database models."""

from .user import Role, User, BlacklistedToken, AuditLog
from .permission import Permission, RolePermission, UserPermission, BranchUserPermission
from .business import Business, Branch, StaffProfile, Device, DeviceType, Space, SpaceType

__all__ = [
    "Role", "User", "BlacklistedToken", "AuditLog",
    "Permission", "RolePermission", "UserPermission", "BranchUserPermission",
    "Business", "Branch", "StaffProfile", "Device", "DeviceType", "Space", "SpaceType",
]
