"""Seed the built-in roles and the permission catalog on startup.

Idempotent: rows that already exist are left alone, so this runs on every
startup and after upgrades that add permissions.
"""

import logging

from sqlalchemy.orm import Session

from .principal import Role as RoleName

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    RoleName.DEVELOPER: "Platform administrator",
    RoleName.OWNER: "Business owner",
    RoleName.ADMIN: "Branch administrator",
    RoleName.STAFF: "Branch staff member",
    RoleName.CUSTOMER: "Customer",
}

_CRUD_RESOURCES = (
    "BRANCHES",
    "BUSINESSES",
    "DEVICES",
    "SPACES",
    "PERMISSIONS",
    "ROLES",
    "ROLE-PERMISSIONS",
    "USER-PERMISSIONS",
    "BRANCH-USER-PERMISSIONS",
    "STAFF-PROFILES",
    "USERS",
)

PERMISSIONS = (
    ["REGISTER-OWNER", "REGISTER-ADMIN", "REGISTER-STAFF"]
    + [f"{action}-{resource}" for resource in _CRUD_RESOURCES for action in ("CREATE", "VIEW", "UPDATE", "DELETE")]
)


def seed_roles(db: Session) -> int:
    """Create any missing built-in role. Returns the number created."""
    from ..models.user import Role

    existing = {r[0] for r in db.query(Role.name).all()}
    created = 0
    for name, description in ROLE_DESCRIPTIONS.items():
        if name.value not in existing:
            db.add(Role(name=name.value, description=description))
            created += 1
    if created:
        db.commit()
    return created


def seed_catalog(db: Session) -> tuple[int, int]:
    """Seed roles and permissions. Returns ``(roles created, permissions created)``."""
    from ..services.grant_service import seed_permissions

    roles = seed_roles(db)
    permissions = seed_permissions(db, PERMISSIONS)
    if roles or permissions:
        logger.info("Seeded %d roles and %d permissions", roles, permissions)
    else:
        logger.debug("Role and permission catalog already seeded")
    return roles, permissions
