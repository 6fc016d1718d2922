"""Branch endpoints. Single-branch routes require BRANCH ownership (branch access)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_ownership, require_permission
from ..core.principal import Principal
from ..database import get_db
from ..models.business import Branch
from ..schemas.business import BranchCreate, BranchResponse, BranchUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import business_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/branches", tags=["branches"], route_class=CachedRoute)

accessible_branch = require_ownership(OwnershipScope.BRANCH, Branch, "branch_id")


@router.post("", response_model=ApiResponse[BranchResponse], status_code=201)
def create_branch(
    body: BranchCreate,
    principal: Principal = Depends(require_permission("CREATE-BRANCHES")),
    db: Session = Depends(get_db),
):
    branch = business_service.create_branch(db, body, principal)
    return ApiResponse(message="Branch created successfully", data=BranchResponse.model_validate(branch))


@router.get(
    "",
    response_model=ApiResponse[list[BranchResponse]],
    dependencies=[
        Depends(require_permission("VIEW-BRANCHES")),
        Depends(cache_response(list_cache_key("branches"), CacheCategory.LIST)),
    ],
)
def list_branches(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    branches, total = business_service.list_branches(db, params)
    return page_response(branches, BranchResponse, params, total)


@router.get(
    "/business/{business_id}",
    response_model=ApiResponse[list[BranchResponse]],
    dependencies=[
        Depends(require_permission("VIEW-BRANCHES")),
        Depends(cache_response(list_cache_key("branches", "business_id"), CacheCategory.LIST)),
    ],
)
def list_by_business(business_id: str, params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    branches, total = business_service.list_branches_by_business(db, business_id, params)
    return page_response(branches, BranchResponse, params, total)


@router.get(
    "/{branch_id}",
    response_model=ApiResponse[BranchResponse],
    dependencies=[
        Depends(require_permission("VIEW-BRANCHES", branch_scoped=True)),
        Depends(accessible_branch),
        Depends(cache_response(item_cache_key("branch", "branch_id"), CacheCategory.BY_ID)),
    ],
)
def get_branch(branch: Branch = Depends(accessible_branch)):
    return ApiResponse(data=BranchResponse.model_validate(branch))


@router.put(
    "/{branch_id}",
    response_model=ApiResponse[BranchResponse],
    dependencies=[Depends(require_permission("UPDATE-BRANCHES", branch_scoped=True))],
)
def update_branch(
    body: BranchUpdate,
    branch: Branch = Depends(accessible_branch),
    db: Session = Depends(get_db),
):
    branch = business_service.update_branch(db, branch, body)
    return ApiResponse(message="Branch updated successfully", data=BranchResponse.model_validate(branch))


@router.delete(
    "/{branch_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-BRANCHES", branch_scoped=True))],
)
def delete_branch(branch: Branch = Depends(accessible_branch), db: Session = Depends(get_db)):
    business_service.delete_branch(db, branch)
    return ApiResponse(message="Branch deleted successfully")
