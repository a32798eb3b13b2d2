import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db import get_db
from app.models.equipment import EquipmentCategory
from app.schemas.conversation import MessageResponse
from app.schemas.equipment import ContactOwnerRequest, DateRange, EquipmentCreate, EquipmentResponse
from app.services import catalog, conversations
from app.utils.auth import ensure_acting_user, get_current_user
from app.utils.errors import DomainError, to_http_exception
from app.utils.scheduler import find_free_ranges

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment",
    tags=["equipment"],
)


@router.post("/", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
def create_equipment(
    equipment: EquipmentCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Publish a new listing owned by the authenticated user.
    """
    try:
        return catalog.create_equipment(db, owner_id=current_user["id"], **equipment.model_dump())
    except DomainError as exc:
        logger.error(f"Listing rejected for user {current_user['id']}: {exc}")
        raise to_http_exception(exc)


@router.get("/", response_model=List[EquipmentResponse])
def get_equipment_list(
    q: Optional[str] = None,
    category: Optional[EquipmentCategory] = None,
    db: Session = Depends(get_db),
):
    """
    Search the catalog.

    - **q**: case-insensitive text matched against title, description and category name.
    - **category**: restrict to one category.
    """
    return catalog.search_equipment(db, text=q, category=category)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
def get_equipment(equipment_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a specific listing by ID.
    """
    try:
        return catalog.get_equipment(db, equipment_id)
    except DomainError as exc:
        raise to_http_exception(exc)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def archive_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Archive a listing. Requires ownership.
    """
    try:
        equipment = catalog.get_equipment(db, equipment_id)
    except DomainError as exc:
        raise to_http_exception(exc)
    if equipment.owner_id != current_user["id"]:
        logger.error(f"User {current_user['username']} not authorized to archive equipment {equipment_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to archive this equipment")

    catalog.archive_equipment(db, equipment_id)
    return None


@router.get("/{equipment_id}/availability", response_model=List[DateRange])
def get_availability(equipment_id: int, db: Session = Depends(get_db)):
    """
    List the free date ranges of a listing, each inclusive of both ends.
    """
    try:
        ranges = find_free_ranges(db, equipment_id)
    except DomainError as exc:
        raise to_http_exception(exc)
    logger.debug(f"Found {len(ranges)} free ranges for equipment {equipment_id}")
    return [{"start_date": start, "end_date": end} for start, end in ranges]


@router.post("/{equipment_id}/contact", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def contact_owner(
    equipment_id: int,
    contact: ContactOwnerRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Send a message to the owner of a listing, opening the conversation if needed.
    """
    ensure_acting_user(contact.sender_id, current_user)
    try:
        equipment = catalog.get_equipment(db, equipment_id)
        return conversations.send_direct_message(
            db, contact.sender_id, equipment.owner_id, contact.text, equipment_id
        )
    except DomainError as exc:
        logger.error(f"Contact for equipment {equipment_id} rejected: {exc}")
        raise to_http_exception(exc)
