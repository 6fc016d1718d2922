"""Data access repositories."""

from .base import BaseRepository
from .permission_store import PermissionStore, SqlPermissionStore
from .resources import (
    UserRepository,
    RoleRepository,
    PermissionRepository,
    RolePermissionRepository,
    UserPermissionRepository,
    BranchUserPermissionRepository,
    BusinessRepository,
    BranchRepository,
    StaffProfileRepository,
    DeviceRepository,
    SpaceRepository,
)

__all__ = [
    "BaseRepository",
    "PermissionStore",
    "SqlPermissionStore",
    "UserRepository",
    "RoleRepository",
    "PermissionRepository",
    "RolePermissionRepository",
    "UserPermissionRepository",
    "BranchUserPermissionRepository",
    "BusinessRepository",
    "BranchRepository",
    "StaffProfileRepository",
    "DeviceRepository",
    "SpaceRepository",
]
