import enum
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer,
    JSON, Numeric, String, Text,
)
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.clock import utcnow


class EquipmentCategory(str, enum.Enum):
    cameras = "cameras"
    lenses = "lenses"
    lighting = "lighting"
    audio = "audio"
    stabilizers = "stabilizers"
    drones = "drones"
    rigging = "rigging"
    monitors = "monitors"
    other = "other"

    @property
    def display_name(self):
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    EquipmentCategory.cameras: "Cameras",
    EquipmentCategory.lenses: "Lenses",
    EquipmentCategory.lighting: "Lighting",
    EquipmentCategory.audio: "Audio",
    EquipmentCategory.stabilizers: "Stabilizers",
    EquipmentCategory.drones: "Drones",
    EquipmentCategory.rigging: "Rigging",
    EquipmentCategory.monitors: "Monitors",
    EquipmentCategory.other: "Other",
}


class Equipment(Base):
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Enum(EquipmentCategory), nullable=False, index=True)
    price_per_day = Column(Numeric(10, 2), nullable=False)
    available_from = Column(Date, nullable=False)
    available_until = Column(Date, nullable=False)
    location = Column(String, nullable=True)
    image_urls = Column(JSON, nullable=False, default=list)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="listings")
    bookings = relationship(
        "Booking", back_populates="equipment", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("price_per_day > 0", name="check_equipment_price_positive"),
        CheckConstraint(
            "available_from <= available_until", name="check_equipment_window"
        ),
    )
