"""Role, User, BlacklistedToken, and AuditLog models.

Users authenticate with email/password and receive JWT session tokens that
carry their role. Logging out blacklists the token until it expires.
AuditLog records every permission-relevant state change for accountability.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base, generate_id


class Role(Base):
    """Named role. Permissions are granted to roles through RolePermission.

    Built-in roles (seeded at startup):
        DEVELOPER — platform administrator, bypasses every permission check
        OWNER     — elevated business owner, bypasses every permission check
        ADMIN     — branch administrator, needs grants/overrides
        STAFF     — confined to the branches they are assigned to
        CUSTOMER  — default role for self-registered users
    """

    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="role")


class User(Base):
    """User account. Exactly one role per user."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    role = relationship("Role", back_populates="users")

    @property
    def role_name(self) -> str:
        return self.role.name if self.role is not None else ""


class BlacklistedToken(Base):
    """Session token revoked by logout. Rows are useless once ``expires_at`` passes."""

    __tablename__ = "blacklisted_tokens"

    token = Column(String(1024), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Written by the service layer, never modified or deleted.
    Fields:
        action        — create, update, delete, grant_create, grant_revoke,
                        override_create, override_update, override_revoke,
                        role_change, login, logout
        resource_type — role, permission, role_permission, user_permission,
                        branch_user_permission, user
        resource_id   — ID of the affected resource
        details       — JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
