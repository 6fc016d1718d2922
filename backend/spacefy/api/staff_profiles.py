"""Staff assignment endpoints (branch-scoped)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, list_cache_key
from ..core.auth import require_ownership, require_permission
from ..database import get_db
from ..models.business import Branch, StaffProfile
from ..schemas.business import StaffProfileCreate, StaffProfileResponse
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import business_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/staff-profiles", tags=["staff-profiles"], route_class=CachedRoute)

accessible_branch = require_ownership(OwnershipScope.BRANCH, Branch, "branch_id")
accessible_profile = require_ownership(OwnershipScope.BRANCH, StaffProfile, "staff_profile_id")


@router.post(
    "",
    response_model=ApiResponse[StaffProfileResponse],
    status_code=201,
    dependencies=[Depends(require_permission("CREATE-STAFF-PROFILES", branch_scoped=True))],
)
def assign_staff(body: StaffProfileCreate, db: Session = Depends(get_db)):
    profile = business_service.assign_staff(db, body)
    return ApiResponse(message="Staff assigned successfully", data=StaffProfileResponse.model_validate(profile))


@router.get(
    "/branch/{branch_id}",
    response_model=ApiResponse[list[StaffProfileResponse]],
    dependencies=[
        Depends(require_permission("VIEW-STAFF-PROFILES", branch_scoped=True)),
        Depends(accessible_branch),
        Depends(cache_response(list_cache_key("staff-profiles", "branch_id"), CacheCategory.LIST)),
    ],
)
def list_by_branch(branch_id: str, params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    profiles, total = business_service.list_staff_by_branch(db, branch_id, params)
    return page_response(profiles, StaffProfileResponse, params, total)


@router.delete(
    "/{branch_id}/{staff_profile_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-STAFF-PROFILES", branch_scoped=True))],
)
def delete_staff_profile(profile: StaffProfile = Depends(accessible_profile), db: Session = Depends(get_db)):
    business_service.delete_staff_profile(db, profile)
    return ApiResponse(message="Staff profile deleted successfully")
