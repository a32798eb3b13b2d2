"""
Booking engine.

All overlap checks and inserts for one equipment item run under that item's
calendar lock, so two requests for the same dates cannot both pass the check
before either writes. A booking and the message it seeds commit together or
not at all.
"""

import logging
import threading
from collections import namedtuple
from datetime import date
from decimal import Decimal
from typing import Dict
from sqlalchemy.orm import Session
from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from app.models.equipment import Equipment
from app.services import catalog, conversations
from app.services.events import (
    BookingCancelled,
    BookingConfirmed,
    BookingRequested,
    event_bus,
)
from app.utils import clock
from app.utils.errors import (
    InvalidBookingTransition,
    InvalidDateRange,
    NotFound,
    OutOfAvailabilityWindow,
    OverlappingBooking,
    SelfBookingNotAllowed,
)

logger = logging.getLogger(__name__)

Quote = namedtuple("Quote", ["equipment_id", "start_date", "end_date", "days", "total_price"])

_calendar_locks: Dict[int, threading.Lock] = {}
_registry_lock = threading.Lock()


def calendar_lock(equipment_id: int) -> threading.Lock:
    """The single lock owning ``equipment_id``'s booking calendar."""
    with _registry_lock:
        lock = _calendar_locks.get(equipment_id)
        if lock is None:
            lock = _calendar_locks[equipment_id] = threading.Lock()
        return lock


def billable_days(start_date: date, end_date: date) -> int:
    """Both the first and the last day are charged."""
    return max(1, (end_date - start_date).days + 1)


def calculate_total_price(price_per_day, start_date: date, end_date: date) -> Decimal:
    return Decimal(str(price_per_day)) * billable_days(start_date, end_date)


def _validate_dates(equipment: Equipment, start_date: date, end_date: date):
    if end_date < start_date:
        logger.error(f"Invalid date range: {start_date} to {end_date}")
        raise InvalidDateRange(f"End date {end_date} is before start date {start_date}")
    if start_date < equipment.available_from or end_date > equipment.available_until:
        logger.error(
            f"Dates {start_date} to {end_date} outside availability of equipment {equipment.id}: "
            f"{equipment.available_from} to {equipment.available_until}"
        )
        raise OutOfAvailabilityWindow(
            f"Equipment is available from {equipment.available_from} until {equipment.available_until}"
        )


def active_bookings(db: Session, equipment_id: int):
    return db.query(Booking).filter(
        Booking.equipment_id == equipment_id,
        Booking.status.in_(ACTIVE_STATUSES),
    ).order_by(Booking.start_date).all()


def find_overlap(db: Session, equipment_id: int, start_date: date, end_date: date):
    """First active booking sharing at least one calendar day with the range."""
    return db.query(Booking).filter(
        Booking.equipment_id == equipment_id,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.start_date <= end_date,
        Booking.end_date >= start_date,
    ).first()


def quote(db: Session, equipment_id: int, start_date: date, end_date: date) -> Quote:
    equipment = catalog.get_equipment(db, equipment_id)
    _validate_dates(equipment, start_date, end_date)
    return Quote(
        equipment_id=equipment_id,
        start_date=start_date,
        end_date=end_date,
        days=billable_days(start_date, end_date),
        total_price=calculate_total_price(equipment.price_per_day, start_date, end_date),
    )


def _request_text(equipment: Equipment, start_date: date, end_date: date, message=None):
    if message and message.strip():
        return message
    return (
        f"Booking request for {equipment.title} "
        f"from {start_date.isoformat()} to {end_date.isoformat()}"
    )


def request_booking(
    db: Session,
    equipment_id: int,
    renter_id: int,
    start_date: date,
    end_date: date,
    message=None,
) -> Booking:
    """
    Reserve ``equipment_id`` for ``renter_id`` over the inclusive date range.

    The new booking is pending. The renter's conversation with the owner gets
    a message about the request in the same transaction.
    """
    with calendar_lock(equipment_id):
        try:
            equipment = catalog.get_equipment(db, equipment_id)
            if equipment.owner_id == renter_id:
                logger.error(f"User {renter_id} tried to book own equipment {equipment_id}")
                raise SelfBookingNotAllowed("Owners cannot book their own equipment")
            _validate_dates(equipment, start_date, end_date)

            overlapping = find_overlap(db, equipment_id, start_date, end_date)
            if overlapping is not None:
                logger.error(
                    f"Overlapping booking {overlapping.id} for equipment {equipment_id}, "
                    f"dates {start_date} to {end_date}"
                )
                raise OverlappingBooking(
                    f"Equipment is already booked from {overlapping.start_date} to {overlapping.end_date}"
                )

            booking = Booking(
                equipment_id=equipment_id,
                renter_id=renter_id,
                start_date=start_date,
                end_date=end_date,
                status=BookingStatus.pending,
                total_price=calculate_total_price(equipment.price_per_day, start_date, end_date),
            )
            db.add(booking)
            db.flush()

            conversation = conversations.stage_conversation(
                db, renter_id, equipment.owner_id, equipment_id
            )
            conversations.stage_message(
                db, conversation, renter_id,
                _request_text(equipment, start_date, end_date, message),
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(booking)
    logger.info(f"Created booking {booking.id} for equipment {equipment_id}, total {booking.total_price}")
    event_bus.publish(BookingRequested(
        booking_id=booking.id,
        equipment_id=equipment_id,
        renter_id=renter_id,
        owner_id=equipment.owner_id,
        conversation_id=conversation.id,
    ))
    return booking


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking", booking_id)
    return booking


def list_bookings(db: Session, equipment_id=None, renter_id=None):
    query = db.query(Booking)
    if equipment_id is not None:
        query = query.filter(Booking.equipment_id == equipment_id)
    if renter_id is not None:
        query = query.filter(Booking.renter_id == renter_id)
    return query.order_by(Booking.start_date, Booking.id).all()


def _transition(db: Session, booking_id: int, apply):
    """Run a status change for ``booking_id`` under its calendar lock."""
    booking = get_booking(db, booking_id)
    with calendar_lock(booking.equipment_id):
        try:
            db.refresh(booking)
            changed = apply(booking)
            if changed:
                db.commit()
        except Exception:
            db.rollback()
            raise
    if changed:
        db.refresh(booking)
    return booking, changed


def _confirm(booking: Booking) -> bool:
    if booking.status == BookingStatus.confirmed:
        return False
    if booking.status == BookingStatus.cancelled:
        logger.error(f"Cannot confirm cancelled booking {booking.id}")
        raise InvalidBookingTransition("Cancelled bookings cannot be confirmed")
    booking.status = BookingStatus.confirmed
    return True


def _cancel(booking: Booking) -> bool:
    if booking.status == BookingStatus.cancelled:
        return False
    if booking.status == BookingStatus.confirmed and booking.end_date < clock.today():
        logger.error(f"Cannot cancel elapsed booking {booking.id}")
        raise InvalidBookingTransition("Elapsed bookings cannot be cancelled")
    booking.status = BookingStatus.cancelled
    return True


def confirm(db: Session, booking_id: int) -> Booking:
    """pending -> confirmed; confirming a confirmed booking changes nothing."""
    booking, changed = _transition(db, booking_id, _confirm)
    if changed:
        logger.info(f"Confirmed booking {booking_id}")
        event_bus.publish(BookingConfirmed(
            booking_id=booking.id,
            equipment_id=booking.equipment_id,
            renter_id=booking.renter_id,
        ))
    return booking


def cancel(db: Session, booking_id: int) -> Booking:
    """
    pending|confirmed -> cancelled. The interval is free for new requests as
    soon as this returns; cancelling twice changes nothing.
    """
    booking, changed = _transition(db, booking_id, _cancel)
    if changed:
        logger.info(f"Cancelled booking {booking_id}")
        event_bus.publish(BookingCancelled(
            booking_id=booking.id,
            equipment_id=booking.equipment_id,
            renter_id=booking.renter_id,
        ))
    return booking

