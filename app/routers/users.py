import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
from app.db import get_db
from app.models.user import User
from app.schemas.equipment import EquipmentResponse
from app.schemas.user import UserResponse, UserUpdate
from app.services import catalog
from app.utils.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/me", response_model=UserResponse)
def get_me(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Retrieve the authenticated user's profile.
    """
    return _get_user(db, current_user["id"])


@router.put("/me", response_model=UserResponse)
def update_me(user_update: UserUpdate, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Update the authenticated user's username, bio or profile image.
    """
    db_user = _get_user(db, current_user["id"])

    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(db_user, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.error(f"Username {update_data.get('username')} taken during update of user {current_user['id']}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already registered")
    db.refresh(db_user)
    return db_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a public profile by ID.
    """
    return _get_user(db, user_id)


@router.get("/{user_id}/listings", response_model=List[EquipmentResponse])
def get_user_listings(user_id: int, db: Session = Depends(get_db)):
    """
    Retrieve the equipment a user has listed.
    """
    _get_user(db, user_id)
    return catalog.list_owner_equipment(db, user_id)
