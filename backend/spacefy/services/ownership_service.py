"""Ownership checks — may this principal act on this specific resource instance?

Three scopes:
    USER      resource belongs to the caller (``user_id`` by default)
    BUSINESS  caller owns the business (``owner_id`` by default)
    BRANCH    caller can access the resource's branch (see can_access_branch)

The platform administrator passes USER and BUSINESS checks unconditionally;
BRANCH delegates to the branch access checker, which has its own bypass.
"""

import logging
from enum import Enum
from typing import Optional, Type

from sqlalchemy.orm import Session

from ..core.principal import Principal
from ..database import Base
from ..exceptions import ForbiddenError, MisconfiguredRouteError, ResourceNotFoundError
from ..models.business import Branch
from ..repositories.permission_store import PermissionStore
from .permission_service import can_access_branch, is_platform_admin

logger = logging.getLogger(__name__)


class OwnershipScope(str, Enum):
    USER = "user"
    BUSINESS = "business"
    BRANCH = "branch"


_DEFAULT_OWNER_FIELDS = {
    OwnershipScope.USER: "user_id",
    OwnershipScope.BUSINESS: "owner_id",
}


def resolve_scope(scope) -> OwnershipScope:
    """Coerce *scope* to an OwnershipScope or fail as a wiring error (500)."""
    try:
        return OwnershipScope(scope)
    except ValueError:
        raise MisconfiguredRouteError(f"Unknown ownership scope: {scope!r}") from None


def check_ownership(
    db: Session,
    store: PermissionStore,
    scope: OwnershipScope,
    model: Type[Base],
    resource_id: str,
    principal: Principal,
    owner_field: Optional[str] = None,
    path_branch_id: Optional[str] = None,
):
    """Load the resource and verify *principal* may act on it.

    Returns the loaded resource so the endpoint does not fetch it twice.

    For BRANCH scope, *path_branch_id* is the branch the route was authorized
    against. A resource living in a different branch is reported as missing.

    Raises:
        ResourceNotFoundError: No row with *resource_id* or it lies outside
            *path_branch_id* (404, checked first).
        ForbiddenError: The ownership rule for *scope* fails.
        MisconfiguredRouteError: *scope* is not a known scope.
    """
    scope = resolve_scope(scope)
    resource_name = model.__name__

    resource = db.query(model).filter(model.id == resource_id).first()
    if resource is None:
        raise ResourceNotFoundError(resource_name, resource_id)

    if scope is OwnershipScope.BRANCH:
        branch_id = resource.id if model is Branch else getattr(resource, "branch_id", None)
        if branch_id is None:
            raise MisconfiguredRouteError(f"{resource_name} has no branch to check ownership against")
        if path_branch_id is not None and branch_id != path_branch_id:
            raise ResourceNotFoundError(resource_name, resource_id)
        if not can_access_branch(store, principal.user_id, principal.role_name, branch_id):
            logger.info(
                "Branch ownership denied",
                extra={"user_id": principal.user_id, "resource": resource_name, "branch_id": branch_id},
            )
            raise ForbiddenError(f"You cannot access {resource_name.lower()} outside your branches")
        return resource

    if is_platform_admin(principal):
        return resource

    field = owner_field or _DEFAULT_OWNER_FIELDS[scope]
    if not hasattr(resource, field):
        raise MisconfiguredRouteError(f"{resource_name} has no owner field {field!r}")

    if getattr(resource, field) != principal.user_id:
        logger.info(
            "Ownership denied",
            extra={"user_id": principal.user_id, "resource": resource_name, "resource_id": resource_id},
        )
        if scope is OwnershipScope.BUSINESS:
            raise ForbiddenError(f"You cannot access {resource_name.lower()} of another owner")
        raise ForbiddenError(f"You cannot access another user's {resource_name.lower()}")

    return resource
