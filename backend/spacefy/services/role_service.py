"""Role lifecycle. Create/update/delete are platform-administrator operations."""

import logging

from sqlalchemy.orm import Session

from . import audit_service
from ..core.config import settings
from ..exceptions import ConflictError, ValidationError
from ..models.permission import RolePermission
from ..models.user import Role, User
from ..repositories.resources import RoleRepository
from ..schemas.access import RoleCreate, RoleUpdate

logger = logging.getLogger(__name__)


def _protected_role_names() -> set[str]:
    return {name.upper() for name in (settings.default_role, *settings.get_bypass_roles())}


def create_role(db: Session, data: RoleCreate, actor_id: str) -> Role:
    repo = RoleRepository(db)
    if repo.get_by_name(data.name) is not None:
        raise ConflictError(f"Role {data.name} already exists", field="name")
    role = repo.add(Role(name=data.name, description=data.description))
    audit_service.log(db, actor_id, "create", "role", role.id, details={"name": role.name})
    return role


def update_role(db: Session, role_id: str, data: RoleUpdate, actor_id: str) -> Role:
    repo = RoleRepository(db)
    role = repo.get_by_id(role_id)

    if data.name is not None and data.name != role.name:
        if role.name in _protected_role_names():
            raise ValidationError(f"Built-in role {role.name} cannot be renamed", field="name")
        if repo.get_by_name(data.name) is not None:
            raise ConflictError(f"Role {data.name} already exists", field="name")
        role.name = data.name
    if data.description is not None:
        role.description = data.description

    db.commit()
    db.refresh(role)
    audit_service.log(db, actor_id, "update", "role", role.id, details=data.model_dump(exclude_none=True))
    return role


def delete_role(db: Session, role_id: str, actor_id: str) -> int:
    """Delete a role, reassigning its users to the default role.

    Returns the number of users reassigned. The default role and the bypass
    roles cannot be deleted.
    """
    repo = RoleRepository(db)
    role = repo.get_by_id(role_id)
    if role.name in _protected_role_names():
        raise ValidationError(f"Built-in role {role.name} cannot be deleted", field="role_id")

    default = repo.get_by_name(settings.default_role.upper())
    if default is None:
        raise ValidationError("Default role is not configured", field="role_id")

    reassigned = (
        db.query(User)
        .filter(User.role_id == role.id)
        .update({User.role_id: default.id}, synchronize_session=False)
    )
    db.query(RolePermission).filter(RolePermission.role_id == role.id).delete(synchronize_session=False)
    db.query(Role).filter(Role.id == role.id).delete(synchronize_session=False)
    db.commit()
    db.expire_all()

    logger.info("Role deleted", extra={"role": role_id, "reassigned_users": reassigned})
    audit_service.log(
        db, actor_id, "delete", "role", role_id,
        details={"reassigned_users": reassigned, "reassigned_to": default.name},
    )
    return reassigned
