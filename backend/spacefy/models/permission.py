"""Permission catalog and the three grant layers.

Resolution order for a (user, permission[, branch]) question:

    BranchUserPermission  (user, branch, permission) -> is_allowed
    UserPermission        (user, permission)         -> is_allowed
    RolePermission        (role, permission)         -> allowed when present
    otherwise denied

Overrides carry an explicit ``is_allowed`` so a higher layer can revoke what
a lower layer grants.
"""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base, generate_id


class Permission(Base):
    """A named capability, e.g. ``CREATE-BRANCHES``. Names are globally unique."""

    __tablename__ = "permissions"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class RolePermission(Base):
    """Permission granted unconditionally to every holder of a role."""

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(
        String(36), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    permission = relationship("Permission")


class UserPermission(Base):
    """Global allow/deny override for one user, regardless of branch."""

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permission"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(
        String(36), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_allowed = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    permission = relationship("Permission")


class BranchUserPermission(Base):
    """Allow/deny override for one user acting within one branch.

    The existence of any row for (user, branch) also counts as branch
    linkage for the branch access check of non-staff roles.
    """

    __tablename__ = "branch_user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "branch_id", "permission_id", name="uq_branch_user_permission"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(
        String(36), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_allowed = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    permission = relationship("Permission")
