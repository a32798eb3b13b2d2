from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.db import get_db
from app.schemas.equipment import EquipmentResponse
from app.schemas.favorite import FavoriteState, FavoriteToggle
from app.services import favorites
from app.utils.auth import ensure_acting_user, get_current_user
from app.utils.errors import DomainError, to_http_exception


router = APIRouter(
    prefix="/favorites",
    tags=["favorites"],
)


@router.post("/toggle", response_model=FavoriteState)
def toggle_favorite(
    request: FavoriteToggle,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Flip a listing's favorite flag for the user and return the new state.
    """
    ensure_acting_user(request.user_id, current_user)
    try:
        state = favorites.toggle(db, request.user_id, request.equipment_id)
    except DomainError as exc:
        raise to_http_exception(exc)
    return {"equipment_id": request.equipment_id, "is_favorite": state}


@router.get("/", response_model=List[EquipmentResponse])
def get_favorites(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    ensure_acting_user(user_id, current_user)
    return favorites.list_favorites(db, user_id)


@router.get("/{equipment_id}", response_model=FavoriteState)
def get_favorite(
    equipment_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    ensure_acting_user(user_id, current_user)
    return {"equipment_id": equipment_id, "is_favorite": favorites.is_favorite(db, user_id, equipment_id)}
