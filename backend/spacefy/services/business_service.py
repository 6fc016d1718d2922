"""Businesses, branches, staff assignments, devices, and spaces.

Access decisions (permission, branch access, ownership) are made by the route
dependencies before these functions run; what remains here is the rule that
only a business's owner (or the platform administrator) may add branches to
it, plus referential checks.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .permission_service import is_platform_admin
from ..core.principal import Principal, Role as RoleName
from ..exceptions import ConflictError, ForbiddenError, ValidationError
from ..models.business import Branch, Business, Device, DeviceType, Space, SpaceType, StaffProfile
from ..repositories.resources import (
    BranchRepository,
    BusinessRepository,
    DeviceRepository,
    SpaceRepository,
    StaffProfileRepository,
    UserRepository,
)
from ..schemas.business import (
    BranchCreate,
    BranchUpdate,
    BusinessCreate,
    BusinessUpdate,
    DeviceCreate,
    DeviceUpdate,
    SpaceCreate,
    SpaceUpdate,
    StaffProfileCreate,
)
from ..schemas.common import PageParams

logger = logging.getLogger(__name__)


# --- Businesses ---


def create_business(db: Session, data: BusinessCreate, principal: Principal) -> Business:
    return BusinessRepository(db).add(Business(name=data.name.strip(), owner_id=principal.user_id))


def list_businesses(db: Session, params: PageParams):
    return BusinessRepository(db).paginate(params)


def update_business(db: Session, business: Business, data: BusinessUpdate) -> Business:
    if data.name is not None:
        business.name = data.name.strip()
    db.commit()
    db.refresh(business)
    return business


def delete_business(db: Session, business: Business) -> None:
    BusinessRepository(db).delete(business)


# --- Branches ---


def create_branch(db: Session, data: BranchCreate, principal: Principal) -> Branch:
    business = BusinessRepository(db).get_by_id(data.business_id)
    if business.owner_id != principal.user_id and not is_platform_admin(principal):
        raise ForbiddenError("You can only add branches to your own business")
    branch = Branch(business_id=business.id, name=data.name.strip(), address=data.address)
    return BranchRepository(db).add(branch)


def list_branches(db: Session, params: PageParams):
    return BranchRepository(db).paginate(params)


def list_branches_by_business(db: Session, business_id: str, params: PageParams):
    BusinessRepository(db).get_by_id(business_id)
    return BranchRepository(db).paginate(params, Branch.business_id == business_id)


def update_branch(db: Session, branch: Branch, data: BranchUpdate) -> Branch:
    if data.name is not None:
        branch.name = data.name.strip()
    if data.address is not None:
        branch.address = data.address
    db.commit()
    db.refresh(branch)
    return branch


def delete_branch(db: Session, branch: Branch) -> None:
    BranchRepository(db).delete(branch)


# --- Staff profiles ---


def assign_staff(db: Session, data: StaffProfileCreate) -> StaffProfile:
    user = UserRepository(db).get_by_id(data.user_id)
    BranchRepository(db).get_by_id(data.branch_id)
    if user.role_name.upper() != RoleName.STAFF.value:
        raise ValidationError("Only STAFF users can be assigned to a branch", field="user_id")

    existing = (
        db.query(StaffProfile)
        .filter(StaffProfile.user_id == data.user_id, StaffProfile.branch_id == data.branch_id)
        .first()
    )
    if existing is not None:
        raise ConflictError("User is already assigned to this branch", field="user_id")

    profile = StaffProfile(user_id=data.user_id, branch_id=data.branch_id, position=data.position)
    profile = StaffProfileRepository(db).add(profile)
    logger.info("Staff assigned", extra={"user_id": data.user_id, "branch_id": data.branch_id})
    return profile


def list_staff_by_branch(db: Session, branch_id: str, params: PageParams):
    return StaffProfileRepository(db).paginate(params, StaffProfile.branch_id == branch_id)


def delete_staff_profile(db: Session, profile: StaffProfile) -> None:
    StaffProfileRepository(db).delete(profile)


# --- Devices ---


def create_device(db: Session, data: DeviceCreate) -> Device:
    BranchRepository(db).get_by_id(data.branch_id)
    device = Device(
        branch_id=data.branch_id,
        type=data.type.value,
        custom_type_label=data.custom_type_label,
        hourly_price=data.hourly_price,
        is_active=data.is_active,
    )
    return DeviceRepository(db).add(device)


def list_devices_by_branch(db: Session, branch_id: str, params: PageParams):
    return DeviceRepository(db).paginate(params, Device.branch_id == branch_id)


def update_device(db: Session, device: Device, data: DeviceUpdate) -> Device:
    new_type = data.type.value if data.type is not None else device.type
    label = data.custom_type_label if data.custom_type_label is not None else device.custom_type_label
    if new_type == DeviceType.OTHER.value and not (label or "").strip():
        raise ValidationError("custom_type_label is required when type is OTHER", field="custom_type_label")

    device.type = new_type
    device.custom_type_label = label if new_type == DeviceType.OTHER.value else None
    if data.hourly_price is not None:
        device.hourly_price = data.hourly_price
    if data.is_active is not None:
        device.is_active = data.is_active
    db.commit()
    db.refresh(device)
    return device


def delete_device(db: Session, device: Device) -> None:
    DeviceRepository(db).delete(device)


# --- Spaces ---


def create_space(db: Session, data: SpaceCreate) -> Space:
    BranchRepository(db).get_by_id(data.branch_id)
    space = Space(
        branch_id=data.branch_id,
        name=data.name.strip(),
        type=data.type.value,
        custom_type_label=data.custom_type_label,
        capacity=data.capacity,
        is_active=data.is_active,
    )
    return SpaceRepository(db).add(space)


def list_spaces_by_branch(
    db: Session,
    branch_id: str,
    params: PageParams,
    space_type: Optional[SpaceType] = None,
    is_active: Optional[bool] = None,
):
    criteria = [Space.branch_id == branch_id]
    if space_type is not None:
        criteria.append(Space.type == space_type.value)
    if is_active is not None:
        criteria.append(Space.is_active == is_active)
    return SpaceRepository(db).paginate(params, *criteria)


def update_space(db: Session, space: Space, data: SpaceUpdate) -> Space:
    new_type = data.type.value if data.type is not None else space.type
    label = data.custom_type_label if data.custom_type_label is not None else space.custom_type_label
    if data.custom_type_label and new_type != SpaceType.OTHER.value:
        raise ValidationError("custom_type_label can only be set when type is OTHER", field="custom_type_label")

    space.type = new_type
    space.custom_type_label = label if new_type == SpaceType.OTHER.value else None
    if data.name is not None:
        space.name = data.name.strip()
    if data.capacity is not None:
        space.capacity = data.capacity
    if data.is_active is not None:
        space.is_active = data.is_active
    db.commit()
    db.refresh(space)
    return space


def delete_space(db: Session, space: Space) -> None:
    SpaceRepository(db).delete(space)
