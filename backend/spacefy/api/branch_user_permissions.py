"""Per-branch permission override endpoints.

Every route is branch-scoped: the caller must be able to access the targeted
branch(es) and hold the permission there. The branch id comes from the body
(``branch_id`` / ``branch_ids``) or the ``branch_id`` query parameter.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .caching import CachedRoute
from ..core.auth import require_permission
from ..core.principal import Principal
from ..database import get_db
from ..schemas.access import (
    BranchOverrideDelete,
    BranchOverrideUpdate,
    BranchUserPermissionCreate,
    BranchUserPermissionResponse,
)
from ..schemas.common import ApiResponse, CountResult, PageParams, page_params, page_response
from ..services import grant_service

router = APIRouter(prefix="/branch-user-permissions", tags=["branch-user-permissions"], route_class=CachedRoute)


@router.post("", response_model=ApiResponse[CountResult], status_code=201)
def create_overrides(
    body: BranchUserPermissionCreate,
    principal: Principal = Depends(require_permission("CREATE-BRANCH-USER-PERMISSIONS", branch_scoped=True)),
    db: Session = Depends(get_db),
):
    inserted, total = grant_service.create_branch_overrides(
        db, body.user_id, body.branch_ids, body.permission_ids, body.is_allowed, principal.user_id
    )
    return ApiResponse(
        message="Branch user permissions created successfully",
        data=CountResult(inserted_count=inserted, total_records=total),
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[BranchUserPermissionResponse]],
    dependencies=[Depends(require_permission("VIEW-BRANCH-USER-PERMISSIONS", branch_scoped=True))],
)
def list_by_user(
    user_id: str,
    branch_id: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    overrides, total = grant_service.list_branch_overrides(db, user_id, params, branch_id=branch_id)
    return page_response(overrides, BranchUserPermissionResponse, params, total)


@router.patch("/user/{user_id}", response_model=ApiResponse[dict])
def update_overrides(
    user_id: str,
    body: BranchOverrideUpdate,
    principal: Principal = Depends(require_permission("UPDATE-BRANCH-USER-PERMISSIONS", branch_scoped=True)),
    db: Session = Depends(get_db),
):
    updated = grant_service.update_branch_overrides(
        db, user_id, body.branch_id, body.permission_ids, body.is_allowed, principal.user_id
    )
    return ApiResponse(message="Branch user permissions updated successfully", data={"updated_count": updated})


@router.delete("/user/{user_id}/specific", response_model=ApiResponse[dict])
def delete_specific(
    user_id: str,
    body: BranchOverrideDelete,
    principal: Principal = Depends(require_permission("DELETE-BRANCH-USER-PERMISSIONS", branch_scoped=True)),
    db: Session = Depends(get_db),
):
    deleted = grant_service.delete_branch_overrides(
        db, user_id, principal.user_id, branch_id=body.branch_id, permission_ids=body.permission_ids
    )
    return ApiResponse(message="Branch user permissions deleted successfully", data={"deleted_count": deleted})


@router.delete("/user/{user_id}", response_model=ApiResponse[dict])
def delete_all_in_branch(
    user_id: str,
    branch_id: str = Query(...),
    principal: Principal = Depends(require_permission("DELETE-BRANCH-USER-PERMISSIONS", branch_scoped=True)),
    db: Session = Depends(get_db),
):
    deleted = grant_service.delete_branch_overrides(db, user_id, principal.user_id, branch_id=branch_id)
    return ApiResponse(message="Branch user permissions deleted successfully", data={"deleted_count": deleted})
