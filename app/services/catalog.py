import logging
from decimal import Decimal
from sqlalchemy.orm import Session
from app.models.equipment import Equipment, EquipmentCategory
from app.utils.errors import InvalidDateRange, InvalidListing, NotFound

logger = logging.getLogger(__name__)


def _active(db: Session):
    return db.query(Equipment).filter(Equipment.is_archived.is_(False))


def create_equipment(
    db: Session,
    owner_id: int,
    title: str,
    description: str,
    category: EquipmentCategory,
    price_per_day,
    available_from,
    available_until,
    location=None,
    image_urls=None,
) -> Equipment:
    """Publish a listing for ``owner_id`` and return it."""
    if not title or not title.strip():
        raise InvalidListing("Title must not be empty")
    if not description or not description.strip():
        raise InvalidListing("Description must not be empty")
    price_per_day = Decimal(str(price_per_day))
    if price_per_day <= 0:
        raise InvalidListing("Price per day must be positive")
    if available_from > available_until:
        raise InvalidDateRange("Availability window ends before it starts")

    equipment = Equipment(
        owner_id=owner_id,
        title=title.strip(),
        description=description.strip(),
        category=EquipmentCategory(category),
        price_per_day=price_per_day,
        available_from=available_from,
        available_until=available_until,
        location=location,
        image_urls=list(image_urls or []),
    )
    db.add(equipment)
    db.commit()
    db.refresh(equipment)
    logger.info(f"Created equipment {equipment.id} for owner {owner_id}")
    return equipment


def get_equipment(db: Session, equipment_id: int) -> Equipment:
    equipment = _active(db).filter(Equipment.id == equipment_id).first()
    if equipment is None:
        raise NotFound("Equipment", equipment_id)
    return equipment


def search_equipment(db: Session, text=None, category=None):
    """
    Case-insensitive substring search over title, description and the
    category display name, optionally narrowed to one category.

    Results keep insertion order. Blank text matches everything.
    """
    query = _active(db)
    if category is not None:
        query = query.filter(Equipment.category == EquipmentCategory(category))
    items = query.order_by(Equipment.id).all()
    if not text or not text.strip():
        return items

    # SQLite lower() only folds ASCII, so matching happens here
    needle = text.strip().casefold()
    return [
        item for item in items
        if needle in item.title.casefold()
        or needle in item.description.casefold()
        or needle in item.category.display_name.casefold()
    ]


def filter_by_category(db: Session, category=None):
    return search_equipment(db, category=category)


def list_owner_equipment(db: Session, owner_id: int):
    return _active(db).filter(Equipment.owner_id == owner_id).order_by(Equipment.id).all()


def archive_equipment(db: Session, equipment_id: int) -> Equipment:
    """Hide a listing from the catalog and from new bookings."""
    equipment = get_equipment(db, equipment_id)
    equipment.is_archived = True
    db.commit()
    logger.info(f"Archived equipment {equipment_id}")
    return equipment
