"""Role grant endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, list_cache_key
from ..core.auth import require_permission
from ..core.principal import Principal
from ..database import get_db
from ..repositories.resources import RoleRepository
from ..schemas.access import RolePermissionCreate, RolePermissionResponse
from ..schemas.common import ApiResponse, CountResult, PageParams, page_params, page_response
from ..services import grant_service
from ..services.cache_service import CacheCategory

router = APIRouter(prefix="/role-permissions", tags=["role-permissions"], route_class=CachedRoute)


@router.post("", response_model=ApiResponse[CountResult], status_code=201)
def grant_permissions(
    body: RolePermissionCreate,
    principal: Principal = Depends(require_permission("CREATE-ROLE-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    inserted, total = grant_service.grant_role_permissions(db, body.role_id, body.permission_ids, principal.user_id)
    return ApiResponse(
        message="Role permissions granted successfully",
        data=CountResult(inserted_count=inserted, total_records=total),
    )


@router.get(
    "",
    response_model=ApiResponse[list[RolePermissionResponse]],
    dependencies=[
        Depends(require_permission("VIEW-ROLE-PERMISSIONS")),
        Depends(cache_response(list_cache_key("role-permissions"), CacheCategory.LIST)),
    ],
)
def list_role_permissions(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    grants, total = grant_service.list_role_permissions(db, params)
    return page_response(grants, RolePermissionResponse, params, total)


@router.get(
    "/role/{role_id}",
    response_model=ApiResponse[list[RolePermissionResponse]],
    dependencies=[
        Depends(require_permission("VIEW-ROLE-PERMISSIONS")),
        Depends(cache_response(list_cache_key("role-permissions", "role_id"), CacheCategory.LIST)),
    ],
)
def list_by_role(role_id: str, params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    RoleRepository(db).get_by_id(role_id)
    grants, total = grant_service.list_role_permissions(db, params, role_id=role_id)
    return page_response(grants, RolePermissionResponse, params, total)


@router.delete("/{role_permission_id}", response_model=ApiResponse[None])
def revoke_permission(
    role_permission_id: str,
    principal: Principal = Depends(require_permission("DELETE-ROLE-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    grant_service.revoke_role_permission(db, role_permission_id, principal.user_id)
    return ApiResponse(message="Role permission revoked successfully")
