"""Permission checking — the layered authorization resolver.

This is the ONE place where permission precedence is defined. Routes never
compare role names themselves; they call ``authorize`` (specific permission)
and ``can_access_branch`` (coarse branch access) through the dependencies in
``core.auth``.

Design:
    - Two bypass roles (elevated owner, platform administrator) are always
      allowed. Routes restricted to the platform administrator check that
      before calling in here.
    - Otherwise the first layer that has a row decides, in this order:
        branch override (only when a branch id is supplied)
        user override
        role grant
      An explicit ``is_allowed=False`` at a higher layer is final.
    - No row anywhere = no access.
"""

from __future__ import annotations

from typing import AbstractSet, Optional

from ..core.config import settings
from ..core.principal import Principal, Role
from ..exceptions import PermissionNotFoundError
from ..repositories.permission_store import PermissionStore


def authorize(
    store: PermissionStore,
    principal: Principal,
    permission_name: str,
    branch_id: Optional[str] = None,
    bypass_roles: Optional[AbstractSet[str]] = None,
) -> bool:
    """Decide whether *principal* holds *permission_name* (optionally within a branch).

    Args:
        store: Permission store used for every lookup.
        principal: The authenticated identity.
        permission_name: Catalog name, e.g. ``"VIEW-DEVICES"``.
        branch_id: Branch the action targets. Enables the branch override layer.
        bypass_roles: Role names allowed without lookup. Defaults to the
            configured elevated owner and platform administrator.

    Returns:
        True if allowed, False otherwise.

    Raises:
        PermissionNotFoundError: *permission_name* is not in the catalog.
    """
    if bypass_roles is None:
        bypass_roles = settings.get_bypass_roles()

    if principal.role_name.upper() in bypass_roles:
        return True

    permission_id = store.get_permission_id(permission_name)
    if permission_id is None:
        raise PermissionNotFoundError(permission_name)

    if branch_id:
        branch_allowed = store.get_branch_override(principal.user_id, branch_id, permission_id)
        if branch_allowed is not None:
            return branch_allowed

    user_allowed = store.get_user_override(principal.user_id, permission_id)
    if user_allowed is not None:
        return user_allowed

    return store.has_role_grant(principal.role_id, permission_id)


def can_access_branch(
    store: PermissionStore,
    user_id: str,
    role_name: str,
    branch_id: str,
    bypass_roles: Optional[AbstractSet[str]] = None,
) -> bool:
    """Check whether a user may operate inside *branch_id* at all.

    Staff are confined to the branches they hold a staff profile for; no
    override can widen that. Any other non-bypass role needs at least one
    branch override row for the branch, whatever permission it names.
    """
    if bypass_roles is None:
        bypass_roles = settings.get_bypass_roles()

    role = role_name.upper()
    if role in bypass_roles:
        return True

    if role == Role.STAFF.value:
        return store.has_staff_assignment(user_id, branch_id)

    return store.has_branch_linkage(user_id, branch_id)


def is_platform_admin(principal: Principal) -> bool:
    return principal.role_name.upper() == settings.platform_admin_role.upper()


def format_permission(permission_name: str) -> str:
    """Render a catalog name for humans: ``"VIEW-DEVICES"`` -> ``"View Devices"``."""
    return " ".join(word.capitalize() for word in permission_name.lower().split("-") if word)
