"""Business, Branch, StaffProfile, Device, and Space models.

A business is owned by one user and has many branches. Staff are linked to
branches through StaffProfile; devices and spaces belong to exactly one branch.
"""

import enum

from sqlalchemy import Column, String, DateTime, Boolean, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base, generate_id


class DeviceType(str, enum.Enum):
    PC = "PC"
    LAPTOP = "LAPTOP"
    PS4 = "PS4"
    PS5 = "PS5"
    XBOX_ONE = "XBOX_ONE"
    XBOX_SERIES_S = "XBOX_SERIES_S"
    XBOX_SERIES_X = "XBOX_SERIES_X"
    NINTENDO_SWITCH = "NINTENDO_SWITCH"
    VR_HEADSET = "VR_HEADSET"
    SIMULATOR = "SIMULATOR"
    TV = "TV"
    PROJECTOR = "PROJECTOR"
    TABLET = "TABLET"
    SMART_BOARD = "SMART_BOARD"
    SOUND_SYSTEM = "SOUND_SYSTEM"
    CAMERA = "CAMERA"
    MICROPHONE = "MICROPHONE"
    OTHER = "OTHER"


class SpaceType(str, enum.Enum):
    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"
    DESK = "DESK"
    MEETING = "MEETING"
    VIP = "VIP"
    OTHER = "OTHER"


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    branches = relationship("Branch", back_populates="business", cascade="all, delete-orphan")


class Branch(Base):
    __tablename__ = "branches"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(
        String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="branches")


class StaffProfile(Base):
    """Assignment of a STAFF user to a branch.

    Staff can only ever operate inside branches they hold a profile for.
    """

    __tablename__ = "staff_profiles"
    __table_args__ = (
        UniqueConstraint("user_id", "branch_id", name="uq_staff_profile"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Device(Base):
    __tablename__ = "devices"

    id = Column(String(36), primary_key=True, default=generate_id)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    # Only meaningful when type is OTHER.
    custom_type_label = Column(String(100), nullable=True)
    hourly_price = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Space(Base):
    """A bookable area of a branch: a room, a desk, a lounge."""

    __tablename__ = "spaces"

    id = Column(String(36), primary_key=True, default=generate_id)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    custom_type_label = Column(String(100), nullable=True)
    capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
