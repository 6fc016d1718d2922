"""API routes."""

from .auth_routes import router as auth_router
from .branch_user_permissions import router as branch_user_permissions_router
from .branches import router as branches_router
from .businesses import router as businesses_router
from .devices import router as devices_router
from .permissions import router as permissions_router
from .role_permissions import router as role_permissions_router
from .roles import router as roles_router
from .spaces import router as spaces_router
from .staff_profiles import router as staff_profiles_router
from .user_permissions import router as user_permissions_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "branch_user_permissions_router",
    "branches_router",
    "businesses_router",
    "devices_router",
    "permissions_router",
    "role_permissions_router",
    "roles_router",
    "spaces_router",
    "staff_profiles_router",
    "user_permissions_router",
    "users_router",
]
