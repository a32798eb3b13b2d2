import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.models.equipment import Equipment
from app.models.favorite import Favorite
from app.services import catalog
from app.services.events import FavoriteToggled, event_bus

logger = logging.getLogger(__name__)


def is_favorite(db: Session, user_id: int, equipment_id: int) -> bool:
    return db.query(Favorite).filter(
        Favorite.user_id == user_id,
        Favorite.equipment_id == equipment_id,
    ).first() is not None


def toggle(db: Session, user_id: int, equipment_id: int) -> bool:
    """Flip the favorite flag and return the new state."""
    catalog.get_equipment(db, equipment_id)

    removed = db.query(Favorite).filter(
        Favorite.user_id == user_id,
        Favorite.equipment_id == equipment_id,
    ).delete(synchronize_session=False)
    if removed:
        db.commit()
        favorited = False
    else:
        db.add(Favorite(user_id=user_id, equipment_id=equipment_id))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent toggle inserted the same row; last write wins
            db.rollback()
            logger.debug(f"Favorite ({user_id}, {equipment_id}) inserted concurrently")
        favorited = True

    logger.debug(f"User {user_id} favorite {equipment_id}: {favorited}")
    event_bus.publish(FavoriteToggled(
        user_id=user_id, equipment_id=equipment_id, is_favorite=favorited
    ))
    return favorited


def list_favorites(db: Session, user_id: int):
    """The user's favorited listings, most recently favorited first."""
    return db.query(Equipment).join(
        Favorite, Favorite.equipment_id == Equipment.id
    ).filter(
        Favorite.user_id == user_id,
        Equipment.is_archived.is_(False),
    ).order_by(Favorite.created_at.desc(), Favorite.id.desc()).all()
