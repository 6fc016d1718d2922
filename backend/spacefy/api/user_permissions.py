"""Per-user permission override endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute
from ..core.auth import require_permission
from ..core.principal import Principal
from ..database import get_db
from ..schemas.access import OverrideDelete, OverrideUpdate, UserPermissionCreate, UserPermissionResponse
from ..schemas.common import ApiResponse, CountResult, PageParams, page_params, page_response
from ..services import grant_service

router = APIRouter(prefix="/user-permissions", tags=["user-permissions"], route_class=CachedRoute)


@router.post("", response_model=ApiResponse[CountResult], status_code=201)
def create_overrides(
    body: UserPermissionCreate,
    principal: Principal = Depends(require_permission("CREATE-USER-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    inserted, total = grant_service.create_user_overrides(
        db, body.user_id, body.permission_ids, body.is_allowed, principal.user_id
    )
    return ApiResponse(
        message="User permissions created successfully",
        data=CountResult(inserted_count=inserted, total_records=total),
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[UserPermissionResponse]],
    dependencies=[Depends(require_permission("VIEW-USER-PERMISSIONS"))],
)
def list_by_user(user_id: str, params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    overrides, total = grant_service.list_user_overrides(db, user_id, params)
    return page_response(overrides, UserPermissionResponse, params, total)


@router.patch("/user/{user_id}", response_model=ApiResponse[dict])
def update_overrides(
    user_id: str,
    body: OverrideUpdate,
    principal: Principal = Depends(require_permission("UPDATE-USER-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    updated = grant_service.update_user_overrides(db, user_id, body.permission_ids, body.is_allowed, principal.user_id)
    return ApiResponse(message="User permissions updated successfully", data={"updated_count": updated})


@router.delete("/user/{user_id}", response_model=ApiResponse[dict])
def delete_overrides(
    user_id: str,
    body: Optional[OverrideDelete] = None,
    principal: Principal = Depends(require_permission("DELETE-USER-PERMISSIONS")),
    db: Session = Depends(get_db),
):
    deleted = grant_service.delete_user_overrides(
        db, user_id, principal.user_id, body.permission_ids if body else None
    )
    return ApiResponse(message="User permissions deleted successfully", data={"deleted_count": deleted})
