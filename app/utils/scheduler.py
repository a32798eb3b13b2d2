from datetime import timedelta
from sqlalchemy.orm import Session
from app.services import catalog
from app.services.booking_engine import active_bookings


def find_free_ranges(db: Session, equipment_id: int):
    """
    Find the gaps between active bookings inside the equipment's
    availability window, as inclusive (start_date, end_date) pairs.
    """
    equipment = catalog.get_equipment(db, equipment_id)
    one_day = timedelta(days=1)

    ranges = []
    current = equipment.available_from
    for booking in active_bookings(db, equipment_id):
        # Add the gap before the current booking
        if booking.start_date > current:
            ranges.append((current, min(booking.start_date - one_day, equipment.available_until)))
        current = max(current, booking.end_date + one_day)

    # Add the gap after the last booking
    if current <= equipment.available_until:
        ranges.append((current, equipment.available_until))
    return ranges
