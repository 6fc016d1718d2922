"""Repositories for users, roles, the permission catalog, and business resources."""

from typing import Optional

from ..models.business import Branch, Business, Device, Space, StaffProfile
from ..models.permission import BranchUserPermission, Permission, RolePermission, UserPermission
from ..models.user import Role, User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    model_class = User
    sortable_columns = frozenset({"created_at", "name", "email"})

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()


class RoleRepository(BaseRepository[Role]):
    model_class = Role
    sortable_columns = frozenset({"created_at", "name"})

    def get_by_name(self, name: str) -> Optional[Role]:
        return self.db.query(Role).filter(Role.name == name).first()


class PermissionRepository(BaseRepository[Permission]):
    model_class = Permission
    sortable_columns = frozenset({"created_at", "name"})

    def get_by_name(self, name: str) -> Optional[Permission]:
        return self.db.query(Permission).filter(Permission.name == name).first()

    def existing_ids(self, ids) -> set[str]:
        rows = self.db.query(Permission.id).filter(Permission.id.in_(list(ids))).all()
        return {r[0] for r in rows}


class RolePermissionRepository(BaseRepository[RolePermission]):
    model_class = RolePermission


class UserPermissionRepository(BaseRepository[UserPermission]):
    model_class = UserPermission


class BranchUserPermissionRepository(BaseRepository[BranchUserPermission]):
    model_class = BranchUserPermission


class BusinessRepository(BaseRepository[Business]):
    model_class = Business
    sortable_columns = frozenset({"created_at", "name"})


class BranchRepository(BaseRepository[Branch]):
    model_class = Branch
    sortable_columns = frozenset({"created_at", "name"})

    def existing_ids(self, ids) -> set[str]:
        rows = self.db.query(Branch.id).filter(Branch.id.in_(list(ids))).all()
        return {r[0] for r in rows}


class StaffProfileRepository(BaseRepository[StaffProfile]):
    model_class = StaffProfile
    sortable_columns = frozenset({"created_at", "position"})


class DeviceRepository(BaseRepository[Device]):
    model_class = Device
    sortable_columns = frozenset({"created_at", "type", "hourly_price"})


class SpaceRepository(BaseRepository[Space]):
    model_class = Space
    sortable_columns = frozenset({"created_at", "name", "type", "capacity"})
