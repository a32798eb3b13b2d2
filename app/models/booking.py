import enum
from sqlalchemy import Column, Integer, Date, DateTime, Enum, ForeignKey, Index, Numeric
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.clock import utcnow


class BookingStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


# Statuses that hold an interval on the equipment's calendar
ACTIVE_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    renter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.pending)
    total_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    equipment = relationship("Equipment", back_populates="bookings")
    renter = relationship("User", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_equipment_status", "equipment_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, equipment={self.equipment_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )
