from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from datetime import date
from sqlalchemy.orm import Session
from app.db import get_db
from app.schemas.booking import BookingCreate, BookingResponse, QuoteResponse
from app.services import booking_engine
from app.utils.auth import ensure_acting_user, get_current_user
from app.utils.errors import DomainError, to_http_exception
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description="Request equipment for an inclusive date range. Requires authentication."
)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Request a rental of a listing for a date range.
    Requires authentication.

    - **equipment_id**: ID of the equipment to rent.
    - **renter_id**: ID of the renter, must be the authenticated user.
    - **start_date**: First rental day.
    - **end_date**: Last rental day, both days are charged.
    - **message**: Optional note to the owner.

    Returns the pending booking with its total price.
    """
    logger.debug(f"Booking request by user: {current_user['username']}, equipment_id: {booking.equipment_id}")
    ensure_acting_user(booking.renter_id, current_user)

    try:
        db_booking = booking_engine.request_booking(
            db,
            equipment_id=booking.equipment_id,
            renter_id=booking.renter_id,
            start_date=booking.start_date,
            end_date=booking.end_date,
            message=booking.message,
        )
    except DomainError as exc:
        logger.error(f"Booking request for equipment {booking.equipment_id} rejected: {exc.error_kind}")
        raise to_http_exception(exc)
    return db_booking


@router.get(
    "/",
    response_model=List[BookingResponse],
    summary="List bookings",
    description="Retrieve bookings, optionally for one equipment item or renter."
)
def get_bookings(
    equipment_id: Optional[int] = None,
    renter_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """
    Retrieve bookings ordered by start date.

    - **equipment_id**: Only bookings of this equipment.
    - **renter_id**: Only bookings made by this user.
    """
    bookings = booking_engine.list_bookings(db, equipment_id=equipment_id, renter_id=renter_id)
    logger.debug(f"Retrieved {len(bookings)} bookings")
    return bookings


@router.get(
    "/quote",
    response_model=QuoteResponse,
    summary="Quote a rental",
    description="Price a date range for a listing without booking it."
)
def get_quote(
    equipment_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
):
    """
    Total price = price per day x billable days, first and last day included.
    """
    try:
        return booking_engine.quote(db, equipment_id, start_date, end_date)._asdict()
    except DomainError as exc:
        raise to_http_exception(exc)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
):
    try:
        booking = booking_engine.get_booking(db, booking_id)
    except DomainError as exc:
        logger.error(f"Booking not found: {booking_id}")
        raise to_http_exception(exc)
    logger.debug(f"Retrieved booking: {booking_id}")
    return booking


@router.post(
    "/{booking_id}/confirm",
    response_model=BookingResponse,
    summary="Confirm a booking",
    description="Confirm a pending booking. Requires ownership of the equipment."
)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    try:
        booking = booking_engine.get_booking(db, booking_id)
    except DomainError as exc:
        raise to_http_exception(exc)

    if booking.equipment.owner_id != current_user["id"]:
        logger.error(f"User {current_user['username']} not authorized to confirm booking {booking_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to confirm this booking")

    try:
        return booking_engine.confirm(db, booking_id)
    except DomainError as exc:
        raise to_http_exception(exc)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
    description="Cancel a booking. Requires being the renter or the equipment owner."
)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Cancel a booking; its dates become available again immediately.
    """
    try:
        booking = booking_engine.get_booking(db, booking_id)
    except DomainError as exc:
        raise to_http_exception(exc)

    owner_id = booking.equipment.owner_id
    if current_user["id"] not in (booking.renter_id, owner_id):
        logger.error(f"User {current_user['username']} not authorized to cancel booking {booking_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to cancel this booking")

    try:
        return booking_engine.cancel(db, booking_id)
    except DomainError as exc:
        raise to_http_exception(exc)
