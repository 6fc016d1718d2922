"""Business endpoints. Single-business routes require BUSINESS ownership."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_ownership, require_permission
from ..core.principal import Principal
from ..database import get_db
from ..models.business import Business
from ..schemas.business import BusinessCreate, BusinessResponse, BusinessUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import business_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/businesses", tags=["businesses"], route_class=CachedRoute)

owned_business = require_ownership(OwnershipScope.BUSINESS, Business, "business_id")


@router.post("", response_model=ApiResponse[BusinessResponse], status_code=201)
def create_business(
    body: BusinessCreate,
    principal: Principal = Depends(require_permission("CREATE-BUSINESSES")),
    db: Session = Depends(get_db),
):
    business = business_service.create_business(db, body, principal)
    return ApiResponse(message="Business created successfully", data=BusinessResponse.model_validate(business))


@router.get(
    "",
    response_model=ApiResponse[list[BusinessResponse]],
    dependencies=[
        Depends(require_permission("VIEW-BUSINESSES")),
        Depends(cache_response(list_cache_key("businesses"), CacheCategory.LIST)),
    ],
)
def list_businesses(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    businesses, total = business_service.list_businesses(db, params)
    return page_response(businesses, BusinessResponse, params, total)


@router.get(
    "/{business_id}",
    response_model=ApiResponse[BusinessResponse],
    dependencies=[
        Depends(require_permission("VIEW-BUSINESSES")),
        Depends(owned_business),
        Depends(cache_response(item_cache_key("business", "business_id"), CacheCategory.BY_ID)),
    ],
)
def get_business(business: Business = Depends(owned_business)):
    return ApiResponse(data=BusinessResponse.model_validate(business))


@router.put(
    "/{business_id}",
    response_model=ApiResponse[BusinessResponse],
    dependencies=[Depends(require_permission("UPDATE-BUSINESSES"))],
)
def update_business(
    body: BusinessUpdate,
    business: Business = Depends(owned_business),
    db: Session = Depends(get_db),
):
    business = business_service.update_business(db, business, body)
    return ApiResponse(message="Business updated successfully", data=BusinessResponse.model_validate(business))


@router.delete(
    "/{business_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-BUSINESSES"))],
)
def delete_business(business: Business = Depends(owned_business), db: Session = Depends(get_db)):
    business_service.delete_business(db, business)
    return ApiResponse(message="Business deleted successfully")
