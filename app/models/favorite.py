from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from app.db import Base
from app.utils.clock import utcnow


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "equipment_id", name="uq_favorite_user_equipment"),
    )
