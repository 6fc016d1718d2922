"""Permission Store — point lookups the authorization engine depends on.

``PermissionStore`` is the narrow interface the resolver and the branch
access checker consume; ``SqlPermissionStore`` implements it on top of the
SQLAlchemy session. Every method is a single indexed point read, so no
locking is needed between concurrent requests.
"""

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from ..models.business import StaffProfile
from ..models.permission import BranchUserPermission, Permission, RolePermission, UserPermission


class PermissionStore(Protocol):
    """Read-only view of permissions, grants, and overrides."""

    def get_permission_id(self, name: str) -> Optional[str]:
        """Id of the permission called *name*, or None if not in the catalog."""
        ...

    def get_branch_override(self, user_id: str, branch_id: str, permission_id: str) -> Optional[bool]:
        """``is_allowed`` of the branch override row, or None when no row exists."""
        ...

    def get_user_override(self, user_id: str, permission_id: str) -> Optional[bool]:
        """``is_allowed`` of the user override row, or None when no row exists."""
        ...

    def has_role_grant(self, role_id: str, permission_id: str) -> bool:
        ...

    def has_staff_assignment(self, user_id: str, branch_id: str) -> bool:
        ...

    def has_branch_linkage(self, user_id: str, branch_id: str) -> bool:
        """True when any branch override row exists for (user, branch)."""
        ...


class SqlPermissionStore:
    """PermissionStore backed by the relational database."""

    def __init__(self, db: Session):
        self.db = db

    def get_permission_id(self, name: str) -> Optional[str]:
        row = self.db.query(Permission.id).filter(Permission.name == name).first()
        return row[0] if row else None

    def get_branch_override(self, user_id: str, branch_id: str, permission_id: str) -> Optional[bool]:
        row = (
            self.db.query(BranchUserPermission.is_allowed)
            .filter(
                BranchUserPermission.user_id == user_id,
                BranchUserPermission.branch_id == branch_id,
                BranchUserPermission.permission_id == permission_id,
            )
            .first()
        )
        return bool(row[0]) if row else None

    def get_user_override(self, user_id: str, permission_id: str) -> Optional[bool]:
        row = (
            self.db.query(UserPermission.is_allowed)
            .filter(
                UserPermission.user_id == user_id,
                UserPermission.permission_id == permission_id,
            )
            .first()
        )
        return bool(row[0]) if row else None

    def has_role_grant(self, role_id: str, permission_id: str) -> bool:
        return (
            self.db.query(RolePermission.id)
            .filter(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
            .first()
            is not None
        )

    def has_staff_assignment(self, user_id: str, branch_id: str) -> bool:
        return (
            self.db.query(StaffProfile.id)
            .filter(StaffProfile.user_id == user_id, StaffProfile.branch_id == branch_id)
            .first()
            is not None
        )

    def has_branch_linkage(self, user_id: str, branch_id: str) -> bool:
        return (
            self.db.query(BranchUserPermission.id)
            .filter(
                BranchUserPermission.user_id == user_id,
                BranchUserPermission.branch_id == branch_id,
            )
            .first()
            is not None
        )
