"""Device endpoints. All routes are branch-scoped.

Single-device routes carry the branch in the path (``/devices/{branch_id}/{device_id}``)
so the branch override layer applies; ownership is then checked against the
device's own branch.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .caching import CachedRoute, cache_response, item_cache_key, list_cache_key
from ..core.auth import require_ownership, require_permission
from ..database import get_db
from ..models.business import Branch, Device
from ..schemas.business import DeviceCreate, DeviceResponse, DeviceUpdate
from ..schemas.common import ApiResponse, PageParams, page_params, page_response
from ..services import business_service
from ..services.cache_service import CacheCategory
from ..services.ownership_service import OwnershipScope

router = APIRouter(prefix="/devices", tags=["devices"], route_class=CachedRoute)

accessible_branch = require_ownership(OwnershipScope.BRANCH, Branch, "branch_id")
accessible_device = require_ownership(OwnershipScope.BRANCH, Device, "device_id")


@router.post(
    "",
    response_model=ApiResponse[DeviceResponse],
    status_code=201,
    dependencies=[Depends(require_permission("CREATE-DEVICES", branch_scoped=True))],
)
def create_device(body: DeviceCreate, db: Session = Depends(get_db)):
    device = business_service.create_device(db, body)
    return ApiResponse(message="Device created successfully", data=DeviceResponse.model_validate(device))


@router.get(
    "/branch/{branch_id}",
    response_model=ApiResponse[list[DeviceResponse]],
    dependencies=[
        Depends(require_permission("VIEW-DEVICES", branch_scoped=True)),
        Depends(accessible_branch),
        Depends(cache_response(list_cache_key("devices", "branch_id"), CacheCategory.LIST)),
    ],
)
def list_by_branch(branch_id: str, params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    devices, total = business_service.list_devices_by_branch(db, branch_id, params)
    return page_response(devices, DeviceResponse, params, total)


@router.get(
    "/{branch_id}/{device_id}",
    response_model=ApiResponse[DeviceResponse],
    dependencies=[
        Depends(require_permission("VIEW-DEVICES", branch_scoped=True)),
        Depends(accessible_device),
        Depends(cache_response(item_cache_key("device", "device_id"), CacheCategory.BY_ID)),
    ],
)
def get_device(device: Device = Depends(accessible_device)):
    return ApiResponse(data=DeviceResponse.model_validate(device))


@router.patch(
    "/{branch_id}/{device_id}",
    response_model=ApiResponse[DeviceResponse],
    dependencies=[Depends(require_permission("UPDATE-DEVICES", branch_scoped=True))],
)
def update_device(
    body: DeviceUpdate,
    device: Device = Depends(accessible_device),
    db: Session = Depends(get_db),
):
    device = business_service.update_device(db, device, body)
    return ApiResponse(message="Device updated successfully", data=DeviceResponse.model_validate(device))


@router.delete(
    "/{branch_id}/{device_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_permission("DELETE-DEVICES", branch_scoped=True))],
)
def delete_device(device: Device = Depends(accessible_device), db: Session = Depends(get_db)):
    business_service.delete_device(db, device)
    return ApiResponse(message="Device deleted successfully")
