"""User endpoints. Single-user routes require USER ownership (self) or platform admin."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_auth, require_ownership, require_permission, require_platform_admin
from ..core.principal import Principal
from ..database import get_db
from ..models.user import User
from ..repositories.resources import UserRepository
from ..schemas.auth import RoleChangeRequest, UserResponse
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import auth_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/users", tags=["users"], route_class=CachedRoute)

own_account = require_ownership(OwnershipScope.USER, User, "user_id", owner_field="id")


@router.get(
    "",
    response_model=ApiResponse[list[UserResponse]],
    dependencies=[
        Depends(require_permission("VIEW-USERS")),
        Depends(cache_response(list_cache_key("users"), CacheCategory.LIST)),
    ],
)
def list_users(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    users, total = UserRepository(db).paginate(params)
    return page_response(users, UserResponse, params, total)


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    dependencies=[
        Depends(require_permission("VIEW-USERS")),
        Depends(own_account),
        Depends(cache_response(item_cache_key("user", "user_id"), CacheCategory.BY_ID)),
    ],
)
def get_user(user: User = Depends(own_account)):
    return ApiResponse(data=UserResponse.model_validate(user))


@router.patch("/{user_id}/role", response_model=ApiResponse[UserResponse])
def change_role(
    user_id: str,
    body: RoleChangeRequest,
    principal: Principal = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    user = auth_service.change_role(db, user_id, body.role_id, principal.user_id)
    return ApiResponse(message="User role updated successfully", data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-USERS"))],
)
def delete_user(
    user: User = Depends(own_account),
    principal: Principal = Depends(require_auth),
    db: Session = Depends(get_db),
):
    auth_service.delete_user(db, user, principal.user_id)
    return ApiResponse(message="User deleted successfully")
