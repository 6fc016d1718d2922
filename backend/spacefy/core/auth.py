"""Authentication and authorization — FastAPI dependencies.

Public interface:
    ``require_auth``        — returns the Principal or raises 401.
    ``require_platform_admin`` — raises 403 unless the principal is the platform admin.
    ``require_permission``  — factory; runs branch access + the layered resolver.
    ``require_ownership``   — factory; loads the resource and checks ownership.

The decision logic lives in ``services.permission_service`` and
``services.ownership_service``; this module only extracts inputs from the
request and turns denials into errors.
"""

import logging
from typing import Callable, List, Optional, Type

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .principal import Principal
from .token_factory import decode_token
from ..database import Base, get_db
from ..exceptions import AuthenticationError, ForbiddenError, ValidationError
from ..repositories.permission_store import PermissionStore, SqlPermissionStore
from ..services.ownership_service import OwnershipScope, check_ownership, resolve_scope
from ..services.permission_service import authorize, can_access_branch, format_permission, is_platform_admin

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

BRANCH_ID_FIELD = "branch_id"
BRANCH_IDS_FIELD = "branch_ids"


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    if credentials is None:
        raise AuthenticationError("Authorization header missing or malformed")
    if not credentials.credentials:
        raise AuthenticationError("No token provided")
    return credentials.credentials


def require_auth(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Principal:
    """Require a valid, unrevoked JWT and return the caller's Principal."""
    from ..models.user import BlacklistedToken, User

    if db.query(BlacklistedToken.token).filter(BlacklistedToken.token == token).first():
        raise AuthenticationError("Token has been revoked, please login again")

    payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    if not payload.role_name:
        raise ForbiddenError("Role not found in user session")

    user = db.query(User.is_active).filter(User.id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user[0]:
        raise AuthenticationError("Account is deactivated")

    return Principal(user_id=payload.sub, role_id=payload.role_id, role_name=payload.role_name)


def get_permission_store(db: Session = Depends(get_db)) -> PermissionStore:
    return SqlPermissionStore(db)


def require_platform_admin(principal: Principal = Depends(require_auth)) -> Principal:
    """Restrict a route to the platform administrator. Bypass roles get no exemption here."""
    if not is_platform_admin(principal):
        raise ForbiddenError(f"Only {settings.platform_admin_role.upper()} users can perform this action")
    return principal


async def branch_ids_from_request(request: Request) -> List[str]:
    """Branch ids a request targets: path param, then JSON body, then query string.

    The body may carry a single ``branch_id`` or a ``branch_ids`` list.
    """
    path_value = request.path_params.get(BRANCH_ID_FIELD)
    if path_value:
        return [str(path_value)]

    body = None
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        try:
            body = await request.json()
        except ValueError:
            body = None
    if isinstance(body, dict):
        if body.get(BRANCH_ID_FIELD):
            return [str(body[BRANCH_ID_FIELD])]
        many = body.get(BRANCH_IDS_FIELD)
        if isinstance(many, list) and many:
            return [str(b) for b in many if b]

    query_value = request.query_params.get(BRANCH_ID_FIELD)
    if query_value:
        return [query_value]
    return []


def require_permission(permission_name: str, branch_scoped: bool = False) -> Callable[..., Principal]:
    """Dependency factory gating a route on a catalog permission.

    For branch-scoped routes the branch id is required (400 when absent), the
    caller must be able to access every targeted branch, and the permission is
    resolved with the branch override layer enabled.
    """

    def _check(
        principal: Principal = Depends(require_auth),
        store: PermissionStore = Depends(get_permission_store),
        branch_ids: List[str] = Depends(branch_ids_from_request),
    ) -> Principal:
        if not branch_scoped:
            ensure_permission(store, principal, permission_name)
            return principal

        if not branch_ids:
            raise ValidationError(
                f"branch_id is required for permission: {permission_name}", field=BRANCH_ID_FIELD
            )

        for branch_id in branch_ids:
            if not can_access_branch(store, principal.user_id, principal.role_name, branch_id):
                logger.info(
                    "Branch access denied",
                    extra={"user_id": principal.user_id, "branch_id": branch_id, "permission": permission_name},
                )
                raise ForbiddenError("You do not have access to this branch")
            ensure_permission(store, principal, permission_name, branch_id)
        return principal

    return _check


def ensure_permission(
    store: PermissionStore,
    principal: Principal,
    permission_name: str,
    branch_id: Optional[str] = None,
) -> None:
    """Raise ForbiddenError unless the resolver allows *permission_name*."""
    if authorize(store, principal, permission_name, branch_id=branch_id):
        return
    logger.info(
        "Permission denied",
        extra={"user_id": principal.user_id, "permission": permission_name, "branch_id": branch_id},
    )
    raise ForbiddenError(
        f"Forbidden: You do not have permission to perform {format_permission(permission_name)}"
    )


def require_ownership(
    scope: OwnershipScope,
    model: Type[Base],
    param: str,
    owner_field: Optional[str] = None,
) -> Callable:
    """Dependency factory that loads ``model`` by path param *param* and checks ownership.

    The scope is validated when the route is declared, so a typo fails at
    import time instead of on the first request.

    On routes that also carry ``{branch_id}``, the resource must live in that
    branch, since the permission check ran against it.
    """
    scope = resolve_scope(scope)

    def _check(
        request: Request,
        principal: Principal = Depends(require_auth),
        store: PermissionStore = Depends(get_permission_store),
        db: Session = Depends(get_db),
    ):
        resource_id = request.path_params.get(param)
        if not resource_id:
            raise ValidationError(f"{param} is required", field=param)
        path_branch_id = request.path_params.get("branch_id") if param != "branch_id" else None
        return check_ownership(db, store, scope, model, resource_id, principal, owner_field, path_branch_id)

    return _check
