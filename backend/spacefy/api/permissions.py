"""Permission catalog endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_permission, require_platform_admin
from ..core.principal import Principal
from ..core.seeder import PERMISSIONS
from ..database import get_db
from ..repositories.resources import PermissionRepository
from ..schemas.access import PermissionCreate, PermissionResponse, PermissionUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import grant_service
from ..services.cache_service import CacheCategory
from ..services.permission_service import format_permission

router = APIRouter(prefix="/permissions", tags=["permissions"], route_class=CachedRoute)


@router.post("", response_model=ApiResponse[PermissionResponse], status_code=201)
def create_permission(
    body: PermissionCreate,
    principal: Principal = Depends(require_permission("CREATE-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    permission = grant_service.create_permission(db, body, principal.user_id)
    return ApiResponse(
        message=f"Permission {format_permission(permission.name)} created successfully",
        data=PermissionResponse.model_validate(permission),
    )


@router.post("/seed", response_model=ApiResponse[dict], status_code=201)
def seed_permissions(
    principal: Principal = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    inserted = grant_service.seed_permissions(db, PERMISSIONS)
    return ApiResponse(
        message="Permission catalog seeded",
        data={"inserted_count": inserted, "catalog_size": len(PERMISSIONS)},
    )


@router.get(
    "",
    response_model=ApiResponse[list[PermissionResponse]],
    dependencies=[
        Depends(require_permission("VIEW-PERMISSIONS")),
        Depends(cache_response(list_cache_key("permissions"), CacheCategory.LIST)),
    ],
)
def list_permissions(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    permissions, total = PermissionRepository(db).paginate(params)
    return page_response(permissions, PermissionResponse, params, total)


@router.get(
    "/{permission_id}",
    response_model=ApiResponse[PermissionResponse],
    dependencies=[
        Depends(require_permission("VIEW-PERMISSIONS")),
        Depends(cache_response(item_cache_key("permission", "permission_id"), CacheCategory.BY_ID)),
    ],
)
def get_permission(permission_id: str, db: Session = Depends(get_db)):
    permission = PermissionRepository(db).get_by_id(permission_id)
    return ApiResponse(data=PermissionResponse.model_validate(permission))


@router.put("/{permission_id}", response_model=ApiResponse[PermissionResponse])
def update_permission(
    permission_id: str,
    body: PermissionUpdate,
    principal: Principal = Depends(require_permission("UPDATE-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    permission = grant_service.update_permission(db, permission_id, body, principal.user_id)
    return ApiResponse(message="Permission updated successfully", data=PermissionResponse.model_validate(permission))


@router.delete("/{permission_id}", response_model=ApiResponse[None])
def delete_permission(
    permission_id: str,
    principal: Principal = Depends(require_permission("DELETE-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    grant_service.delete_permission(db, permission_id, principal.user_id)
    return ApiResponse(message="Permission deleted successfully")
