"""Role endpoints. Mutations are reserved for the platform administrator."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_permission, require_platform_admin
from ..core.principal import Principal
from ..database import get_db
from ..repositories.resources import RoleRepository
from ..schemas.access import RoleCreate, RoleResponse, RoleUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import role_service
from ..services.cache_service import CacheCategory

router = APIRouter(prefix="/roles", tags=["roles"], route_class=CachedRoute)


@router.post("", response_model=ApiResponse[RoleResponse], status_code=201)
def create_role(
    body: RoleCreate,
    principal: Principal = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    role = role_service.create_role(db, body, principal.user_id)
    return ApiResponse(message="Role created successfully", data=RoleResponse.model_validate(role))


@router.get(
    "",
    response_model=ApiResponse[list[RoleResponse]],
    dependencies=[
        Depends(require_permission("VIEW-ROLES")),
        Depends(cache_response(list_cache_key("roles"), CacheCategory.LIST)),
    ],
)
def list_roles(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    roles, total = RoleRepository(db).paginate(params)
    return page_response(roles, RoleResponse, params, total)


@router.get(
    "/{role_id}",
    response_model=ApiResponse[RoleResponse],
    dependencies=[
        Depends(require_permission("VIEW-ROLES")),
        Depends(cache_response(item_cache_key("role", "role_id"), CacheCategory.BY_ID)),
    ],
)
def get_role(role_id: str, db: Session = Depends(get_db)):
    return ApiResponse(data=RoleResponse.model_validate(RoleRepository(db).get_by_id(role_id)))


@router.put("/{role_id}", response_model=ApiResponse[RoleResponse])
def update_role(
    role_id: str,
    body: RoleUpdate,
    principal: Principal = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    role = role_service.update_role(db, role_id, body, principal.user_id)
    return ApiResponse(message="Role updated successfully", data=RoleResponse.model_validate(role))


@router.delete("/{role_id}", response_model=ApiResponse[dict])
def delete_role(
    role_id: str,
    principal: Principal = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    reassigned = role_service.delete_role(db, role_id, principal.user_id)
    return ApiResponse(message="Role deleted successfully", data={"reassigned_users": reassigned})
