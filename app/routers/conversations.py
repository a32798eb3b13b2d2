import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.db import get_db
from app.models.conversation import Conversation
from app.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    ReadRequest,
)
from app.services import conversations
from app.utils.auth import ensure_acting_user, get_current_user
from app.utils.errors import DomainError, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
)


def _for_user(conversation: Conversation, user_id: int) -> ConversationResponse:
    """Present a conversation from one participant's side."""
    return ConversationResponse(
        id=conversation.id,
        participant_a_id=conversation.participant_a_id,
        participant_b_id=conversation.participant_b_id,
        equipment_id=conversation.equipment_id,
        other_user_id=conversation.other_participant(user_id),
        last_message=conversation.last_message,
        last_message_at=conversation.last_message_at,
        unread_count=conversation.unread_for(user_id),
    )


@router.post("/", response_model=ConversationResponse)
def open_conversation(
    request: ConversationCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Get the conversation with another user, creating it if needed.
    """
    ensure_acting_user(request.user_id, current_user)
    try:
        conversation = conversations.get_or_create_conversation(
            db, request.user_id, request.other_user_id, request.equipment_id
        )
    except DomainError as exc:
        raise to_http_exception(exc)
    return _for_user(conversation, request.user_id)


@router.get("/", response_model=List[ConversationResponse])
def get_conversations(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    List a user's conversations, most recent message first.
    """
    ensure_acting_user(user_id, current_user)
    return [_for_user(c, user_id) for c in conversations.list_conversations(db, user_id)]


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
def get_messages(
    conversation_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    List the messages of a conversation, oldest first.
    """
    ensure_acting_user(user_id, current_user)
    try:
        return conversations.list_messages(db, conversation_id, reader_id=user_id)
    except DomainError as exc:
        logger.error(f"Listing messages of conversation {conversation_id} rejected: {exc}")
        raise to_http_exception(exc)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_message(
    conversation_id: int,
    message: MessageCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Append a message to a conversation.
    """
    ensure_acting_user(message.sender_id, current_user)
    try:
        return conversations.append_message(db, conversation_id, message.sender_id, message.text)
    except DomainError as exc:
        logger.error(f"Message to conversation {conversation_id} rejected: {exc.error_kind}")
        raise to_http_exception(exc)


@router.post("/{conversation_id}/read", response_model=ConversationResponse)
def mark_read(
    conversation_id: int,
    request: ReadRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    ensure_acting_user(request.user_id, current_user)
    try:
        conversation = conversations.mark_read(db, conversation_id, request.user_id)
    except DomainError as exc:
        raise to_http_exception(exc)
    return _for_user(conversation, request.user_id)
