"""Permission catalog, role grants, and per-user / per-branch overrides.

Grants and overrides are created with skip-if-duplicate semantics: asking
for a row that already exists is a no-op, so repeating a grant is safe. A
concurrent insert of the same row is absorbed by one retry.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import audit_service
from ..exceptions import ConflictError, ResourceNotFoundError
from ..models.permission import BranchUserPermission, Permission, RolePermission, UserPermission
from ..repositories.resources import (
    BranchRepository,
    BranchUserPermissionRepository,
    PermissionRepository,
    RolePermissionRepository,
    RoleRepository,
    UserPermissionRepository,
    UserRepository,
)
from ..schemas.access import PermissionCreate, PermissionUpdate
from ..schemas.common import PageParams

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Permission catalog
# ---------------------------------------------------------------------------


def create_permission(db: Session, data: PermissionCreate, actor_id: str) -> Permission:
    repo = PermissionRepository(db)
    if repo.get_by_name(data.name) is not None:
        raise ConflictError(f"Permission {data.name} already exists", field="name")
    permission = repo.add(Permission(name=data.name, description=data.description))
    audit_service.log(db, actor_id, "create", "permission", permission.id, details={"name": permission.name})
    return permission


def update_permission(db: Session, permission_id: str, data: PermissionUpdate, actor_id: str) -> Permission:
    repo = PermissionRepository(db)
    permission = repo.get_by_id(permission_id)
    if data.name is not None and data.name != permission.name:
        if repo.get_by_name(data.name) is not None:
            raise ConflictError(f"Permission {data.name} already exists", field="name")
        permission.name = data.name
    if data.description is not None:
        permission.description = data.description
    db.commit()
    db.refresh(permission)
    audit_service.log(db, actor_id, "update", "permission", permission.id, details=data.model_dump(exclude_none=True))
    return permission


def delete_permission(db: Session, permission_id: str, actor_id: str) -> None:
    """Delete a permission together with every grant and override that names it."""
    PermissionRepository(db).get_by_id(permission_id)
    for model in (RolePermission, UserPermission, BranchUserPermission):
        db.query(model).filter(model.permission_id == permission_id).delete(synchronize_session=False)
    db.query(Permission).filter(Permission.id == permission_id).delete(synchronize_session=False)
    db.commit()
    db.expire_all()
    audit_service.log(db, actor_id, "delete", "permission", permission_id)


def seed_permissions(db: Session, names: Iterable[str]) -> int:
    """Insert catalog entries that are missing. Returns the number inserted."""
    wanted = list(dict.fromkeys(n.upper() for n in names))

    def _existing() -> set:
        rows = db.query(Permission.name).filter(Permission.name.in_(wanted)).all()
        return {r[0] for r in rows}

    return _insert_missing(
        db,
        wanted,
        _existing,
        key=lambda name: name,
        build=lambda name: Permission(name=name),
    )


# ---------------------------------------------------------------------------
# Shared skip-duplicates insert
# ---------------------------------------------------------------------------


def _insert_missing(
    db: Session,
    candidates: Sequence,
    existing: Callable[[], set],
    key: Callable,
    build: Callable,
) -> int:
    """Insert rows for candidates whose key is not already present.

    On a unique-constraint race the transaction is rolled back and the
    existing set re-read once.
    """
    for attempt in range(2):
        present = existing()
        missing = [c for c in candidates if key(c) not in present]
        if not missing:
            return 0
        try:
            db.add_all([build(c) for c in missing])
            db.commit()
            return len(missing)
        except IntegrityError:
            db.rollback()
            if attempt == 1:
                raise ConflictError("Concurrent modification, please retry")
            logger.info("Duplicate insert raced, retrying", extra={"rows": len(missing)})
    return 0


def _require_permissions(db: Session, permission_ids: Sequence[str]) -> None:
    wanted = set(permission_ids)
    found = PermissionRepository(db).existing_ids(wanted)
    missing = wanted - found
    if missing:
        raise ResourceNotFoundError("Permission", ", ".join(sorted(missing)))


# ---------------------------------------------------------------------------
# Role grants
# ---------------------------------------------------------------------------


def grant_role_permissions(
    db: Session, role_id: str, permission_ids: Sequence[str], actor_id: str
) -> Tuple[int, int]:
    """Grant permissions to a role. Returns ``(inserted, total grants for role)``."""
    RoleRepository(db).get_by_id(role_id)
    permission_ids = list(dict.fromkeys(permission_ids))
    _require_permissions(db, permission_ids)

    def _existing() -> set:
        rows = (
            db.query(RolePermission.permission_id)
            .filter(RolePermission.role_id == role_id, RolePermission.permission_id.in_(permission_ids))
            .all()
        )
        return {r[0] for r in rows}

    inserted = _insert_missing(
        db,
        permission_ids,
        _existing,
        key=lambda pid: pid,
        build=lambda pid: RolePermission(role_id=role_id, permission_id=pid),
    )
    total = db.query(RolePermission).filter(RolePermission.role_id == role_id).count()
    audit_service.log(
        db, actor_id, "grant_create", "role_permission", role_id,
        details={"permission_ids": permission_ids, "inserted": inserted},
    )
    return inserted, total


def list_role_permissions(db: Session, params: PageParams, role_id: Optional[str] = None):
    criteria = [RolePermission.role_id == role_id] if role_id is not None else []
    return RolePermissionRepository(db).paginate(params, *criteria)


def revoke_role_permission(db: Session, grant_id: str, actor_id: str) -> None:
    grant = db.query(RolePermission).filter(RolePermission.id == grant_id).first()
    if grant is None:
        raise ResourceNotFoundError("RolePermission", grant_id)
    details = {"role_id": grant.role_id, "permission_id": grant.permission_id}
    db.delete(grant)
    db.commit()
    audit_service.log(db, actor_id, "grant_revoke", "role_permission", grant_id, details=details)


# ---------------------------------------------------------------------------
# User overrides
# ---------------------------------------------------------------------------


def create_user_overrides(
    db: Session, user_id: str, permission_ids: Sequence[str], is_allowed: bool, actor_id: str
) -> Tuple[int, int]:
    """Create global overrides for a user. Existing (user, permission) rows are left untouched."""
    UserRepository(db).get_by_id(user_id)
    permission_ids = list(dict.fromkeys(permission_ids))
    _require_permissions(db, permission_ids)

    def _existing() -> set:
        rows = (
            db.query(UserPermission.permission_id)
            .filter(UserPermission.user_id == user_id, UserPermission.permission_id.in_(permission_ids))
            .all()
        )
        return {r[0] for r in rows}

    inserted = _insert_missing(
        db,
        permission_ids,
        _existing,
        key=lambda pid: pid,
        build=lambda pid: UserPermission(user_id=user_id, permission_id=pid, is_allowed=is_allowed),
    )
    total = db.query(UserPermission).filter(UserPermission.user_id == user_id).count()
    audit_service.log(
        db, actor_id, "override_create", "user_permission", user_id,
        details={"permission_ids": permission_ids, "is_allowed": is_allowed, "inserted": inserted},
    )
    return inserted, total


def list_user_overrides(db: Session, user_id: str, params: PageParams):
    return UserPermissionRepository(db).paginate(params, UserPermission.user_id == user_id)


def update_user_overrides(
    db: Session, user_id: str, permission_ids: Sequence[str], is_allowed: bool, actor_id: str
) -> int:
    updated = (
        db.query(UserPermission)
        .filter(UserPermission.user_id == user_id, UserPermission.permission_id.in_(list(permission_ids)))
        .update({UserPermission.is_allowed: is_allowed}, synchronize_session=False)
    )
    db.commit()
    if not updated:
        raise ResourceNotFoundError("UserPermission", user_id)
    audit_service.log(
        db, actor_id, "override_update", "user_permission", user_id,
        details={"permission_ids": list(permission_ids), "is_allowed": is_allowed},
    )
    return updated


def delete_user_overrides(
    db: Session, user_id: str, actor_id: str, permission_ids: Optional[Sequence[str]] = None
) -> int:
    """Remove a user's overrides; all of them when *permission_ids* is empty."""
    query = db.query(UserPermission).filter(UserPermission.user_id == user_id)
    if permission_ids:
        query = query.filter(UserPermission.permission_id.in_(list(permission_ids)))
    deleted = query.delete(synchronize_session=False)
    db.commit()
    audit_service.log(
        db, actor_id, "override_revoke", "user_permission", user_id,
        details={"permission_ids": list(permission_ids or []), "deleted": deleted},
    )
    return deleted


# ---------------------------------------------------------------------------
# Branch overrides
# ---------------------------------------------------------------------------


def create_branch_overrides(
    db: Session,
    user_id: str,
    branch_ids: Sequence[str],
    permission_ids: Sequence[str],
    is_allowed: bool,
    actor_id: str,
) -> Tuple[int, int]:
    """Create overrides for every (branch, permission) pair. Existing rows are skipped."""
    UserRepository(db).get_by_id(user_id)
    branch_ids = list(dict.fromkeys(branch_ids))
    permission_ids = list(dict.fromkeys(permission_ids))

    missing_branches = set(branch_ids) - BranchRepository(db).existing_ids(branch_ids)
    if missing_branches:
        raise ResourceNotFoundError("Branch", ", ".join(sorted(missing_branches)))
    _require_permissions(db, permission_ids)

    pairs: List[Tuple[str, str]] = [(b, p) for b in branch_ids for p in permission_ids]

    def _existing() -> set:
        rows = (
            db.query(BranchUserPermission.branch_id, BranchUserPermission.permission_id)
            .filter(
                BranchUserPermission.user_id == user_id,
                BranchUserPermission.branch_id.in_(branch_ids),
                BranchUserPermission.permission_id.in_(permission_ids),
            )
            .all()
        )
        return {(r[0], r[1]) for r in rows}

    inserted = _insert_missing(
        db,
        pairs,
        _existing,
        key=lambda pair: pair,
        build=lambda pair: BranchUserPermission(
            user_id=user_id, branch_id=pair[0], permission_id=pair[1], is_allowed=is_allowed
        ),
    )
    total = db.query(BranchUserPermission).filter(BranchUserPermission.user_id == user_id).count()
    audit_service.log(
        db, actor_id, "override_create", "branch_user_permission", user_id,
        details={
            "branch_ids": branch_ids,
            "permission_ids": permission_ids,
            "is_allowed": is_allowed,
            "inserted": inserted,
        },
    )
    return inserted, total


def list_branch_overrides(db: Session, user_id: str, params: PageParams, branch_id: Optional[str] = None):
    criteria = [BranchUserPermission.user_id == user_id]
    if branch_id:
        criteria.append(BranchUserPermission.branch_id == branch_id)
    return BranchUserPermissionRepository(db).paginate(params, *criteria)


def update_branch_overrides(
    db: Session,
    user_id: str,
    branch_id: str,
    permission_ids: Sequence[str],
    is_allowed: bool,
    actor_id: str,
) -> int:
    updated = (
        db.query(BranchUserPermission)
        .filter(
            BranchUserPermission.user_id == user_id,
            BranchUserPermission.branch_id == branch_id,
            BranchUserPermission.permission_id.in_(list(permission_ids)),
        )
        .update({BranchUserPermission.is_allowed: is_allowed}, synchronize_session=False)
    )
    db.commit()
    if not updated:
        raise ResourceNotFoundError("BranchUserPermission", user_id)
    audit_service.log(
        db, actor_id, "override_update", "branch_user_permission", user_id,
        details={"branch_id": branch_id, "permission_ids": list(permission_ids), "is_allowed": is_allowed},
    )
    return updated


def delete_branch_overrides(
    db: Session,
    user_id: str,
    actor_id: str,
    branch_id: Optional[str] = None,
    permission_ids: Optional[Sequence[str]] = None,
) -> int:
    """Remove branch overrides for a user, optionally narrowed to one branch and some permissions."""
    query = db.query(BranchUserPermission).filter(BranchUserPermission.user_id == user_id)
    if branch_id:
        query = query.filter(BranchUserPermission.branch_id == branch_id)
    if permission_ids:
        query = query.filter(BranchUserPermission.permission_id.in_(list(permission_ids)))
    deleted = query.delete(synchronize_session=False)
    db.commit()
    audit_service.log(
        db, actor_id, "override_revoke", "branch_user_permission", user_id,
        details={"branch_id": branch_id, "permission_ids": list(permission_ids or []), "deleted": deleted},
    )
    return deleted
