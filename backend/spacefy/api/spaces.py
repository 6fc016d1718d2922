"""Space endpoints. All routes are branch-scoped, like devices.

The branch listing can be narrowed with ``?type=`` and ``?is_active=``; both
are part of its cache key.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_ownership, require_permission
from ..database import get_db
from ..models.business import Branch, Space, SpaceType
from ..schemas.business import SpaceCreate, SpaceResponse, SpaceUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import business_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/spaces", tags=["spaces"], route_class=CachedRoute)

accessible_branch = require_ownership(OwnershipScope.BRANCH, Branch, "branch_id")
accessible_space = require_ownership(OwnershipScope.BRANCH, Space, "space_id")


@router.post(
    "",
    response_model=ApiResponse[SpaceResponse],
    status_code=201,
    dependencies=[Depends(require_permission("CREATE-SPACES", branch_scoped=True))],
)
def create_space(body: SpaceCreate, db: Session = Depends(get_db)):
    space = business_service.create_space(db, body)
    return ApiResponse(message="Space created successfully", data=SpaceResponse.model_validate(space))


@router.get(
    "/branch/{branch_id}",
    response_model=ApiResponse[list[SpaceResponse]],
    dependencies=[
        Depends(require_permission("VIEW-SPACES", branch_scoped=True)),
        Depends(accessible_branch),
        Depends(
            cache_response(
                list_cache_key("spaces", "branch_id", filters=("type", "is_active")), CacheCategory.LIST
            )
        ),
    ],
)
def list_by_branch(
    branch_id: str,
    space_type: Optional[SpaceType] = Query(None, alias="type"),
    is_active: Optional[bool] = Query(None),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    spaces, total = business_service.list_spaces_by_branch(db, branch_id, params, space_type, is_active)
    return page_response(spaces, SpaceResponse, params, total)


@router.get(
    "/{branch_id}/{space_id}",
    response_model=ApiResponse[SpaceResponse],
    dependencies=[
        Depends(require_permission("VIEW-SPACES", branch_scoped=True)),
        Depends(accessible_space),
        Depends(cache_response(item_cache_key("space", "space_id"), CacheCategory.BY_ID)),
    ],
)
def get_space(space: Space = Depends(accessible_space)):
    return ApiResponse(data=SpaceResponse.model_validate(space))


@router.patch(
    "/{branch_id}/{space_id}",
    response_model=ApiResponse[SpaceResponse],
    dependencies=[Depends(require_permission("UPDATE-SPACES", branch_scoped=True))],
)
def update_space(
    body: SpaceUpdate,
    space: Space = Depends(accessible_space),
    db: Session = Depends(get_db),
):
    space = business_service.update_space(db, space, body)
    return ApiResponse(message="Space updated successfully", data=SpaceResponse.model_validate(space))


@router.delete(
    "/{branch_id}/{space_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-SPACES", branch_scoped=True))],
)
def delete_space(space: Space = Depends(accessible_space), db: Session = Depends(get_db)):
    business_service.delete_space(db, space)
    return ApiResponse(message="Space deleted successfully")
