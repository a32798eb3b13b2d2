"""
Conversation store.

One conversation exists per unordered pair of users. Message timestamps are
assigned by a compare-and-set on ``Conversation.last_message_at`` rather than
a lock, so concurrent writers to one thread still get strictly increasing
timestamps.
"""

import logging
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app import config
from app.models.conversation import Conversation, Message
from app.services.events import MessageAppended, event_bus
from app.utils import clock
from app.utils.errors import (
    EmptyMessage,
    InvalidParticipants,
    MessageOrderingConflict,
    NotFound,
    NotParticipant,
)

logger = logging.getLogger(__name__)


def _ordered_pair(user_a: int, user_b: int):
    if user_a == user_b:
        raise InvalidParticipants("A conversation needs two different users")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _find_conversation(db: Session, user_a: int, user_b: int):
    participant_a, participant_b = _ordered_pair(user_a, user_b)
    return db.query(Conversation).filter(
        Conversation.participant_a_id == participant_a,
        Conversation.participant_b_id == participant_b,
    ).first()


def next_message_timestamp(last_message_at):
    """max(now, last + one tick): strictly after the previous message."""
    now = clock.utcnow()
    if last_message_at is None:
        return now
    return max(now, last_message_at + clock.TICK)


def stage_conversation(db: Session, user_a: int, user_b: int, equipment_id=None) -> Conversation:
    """Find or add the pair's conversation without committing."""
    conversation = _find_conversation(db, user_a, user_b)
    if conversation is None:
        participant_a, participant_b = _ordered_pair(user_a, user_b)
        conversation = Conversation(
            participant_a_id=participant_a,
            participant_b_id=participant_b,
            equipment_id=equipment_id,
            unread_a=0,
            unread_b=0,
        )
        db.add(conversation)
        db.flush()
        logger.debug(f"Opened conversation {conversation.id} between {participant_a} and {participant_b}")
    elif equipment_id is not None and conversation.equipment_id != equipment_id:
        conversation.equipment_id = equipment_id
        db.flush()
    return conversation


def stage_message(db: Session, conversation: Conversation, sender_id: int, text: str) -> Message:
    """
    Add a message to ``conversation`` without committing.

    Raises EmptyMessage, NotParticipant or MessageOrderingConflict; nothing
    has been written when any of them is raised.
    """
    if text is None or not text.strip():
        raise EmptyMessage("Message text must not be empty")
    if not conversation.has_participant(sender_id):
        raise NotParticipant(f"User {sender_id} is not part of conversation {conversation.id}")

    # The recipient's counter goes up
    if sender_id == conversation.participant_a_id:
        unread_values = {"unread_b": Conversation.unread_b + 1}
    else:
        unread_values = {"unread_a": Conversation.unread_a + 1}

    for attempt in range(config.MESSAGE_APPEND_ATTEMPTS):
        last_message_at = db.execute(
            select(Conversation.last_message_at).where(Conversation.id == conversation.id)
        ).scalar_one()
        timestamp = next_message_timestamp(last_message_at)
        result = db.execute(
            update(Conversation)
            .where(
                Conversation.id == conversation.id,
                or_(
                    Conversation.last_message_at.is_(None),
                    Conversation.last_message_at < timestamp,
                ),
            )
            .values(last_message_at=timestamp, last_message=text, **unread_values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            break
        logger.debug(f"Timestamp {timestamp} lost the race on conversation {conversation.id}, attempt {attempt + 1}")
    else:
        raise MessageOrderingConflict(
            f"Could not order message in conversation {conversation.id}"
        )

    message = Message(
        conversation_id=conversation.id,
        sender_id=sender_id,
        text=text,
        timestamp=timestamp,
    )
    db.add(message)
    db.flush()
    db.expire(conversation)
    return message


def get_conversation(db: Session, conversation_id: int) -> Conversation:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if conversation is None:
        raise NotFound("Conversation", conversation_id)
    return conversation


def get_or_create_conversation(db: Session, user_a: int, user_b: int, equipment_id=None) -> Conversation:
    try:
        conversation = stage_conversation(db, user_a, user_b, equipment_id)
        db.commit()
    except IntegrityError:
        # Another request created the pair's conversation first
        db.rollback()
        conversation = _find_conversation(db, user_a, user_b)
        if conversation is None:
            raise
    db.refresh(conversation)
    return conversation


def append_message(db: Session, conversation_id: int, sender_id: int, text: str) -> Message:
    conversation = get_conversation(db, conversation_id)
    try:
        message = stage_message(db, conversation, sender_id, text)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    logger.debug(f"Appended message {message.id} to conversation {conversation_id} at {message.timestamp}")
    event_bus.publish(MessageAppended(
        conversation_id=conversation_id,
        message_id=message.id,
        sender_id=sender_id,
        recipient_id=conversation.other_participant(sender_id),
        timestamp=message.timestamp,
    ))
    return message


def list_conversations(db: Session, user_id: int):
    """The user's conversations, most recent activity first."""
    return db.query(Conversation).filter(
        or_(
            Conversation.participant_a_id == user_id,
            Conversation.participant_b_id == user_id,
        )
    ).order_by(
        Conversation.last_message_at.desc().nulls_last(),
        Conversation.id.desc(),
    ).all()


def list_messages(db: Session, conversation_id: int, reader_id=None):
    """
    Messages of a conversation in timestamp order.

    When ``reader_id`` is given it must be a participant, and messages sent
    to them are stamped as delivered.
    """
    conversation = get_conversation(db, conversation_id)
    if reader_id is not None:
        if not conversation.has_participant(reader_id):
            raise NotParticipant(f"User {reader_id} is not part of conversation {conversation_id}")
        db.query(Message).filter(
            Message.conversation_id == conversation_id,
            Message.sender_id != reader_id,
            Message.delivered_at.is_(None),
        ).update({Message.delivered_at: clock.utcnow()}, synchronize_session=False)
        db.commit()
    return db.query(Message).filter(
        Message.conversation_id == conversation_id
    ).order_by(Message.timestamp, Message.id).all()


def mark_read(db: Session, conversation_id: int, user_id: int) -> Conversation:
    """Reset the user's unread counter and stamp the messages sent to them."""
    conversation = get_conversation(db, conversation_id)
    if not conversation.has_participant(user_id):
        raise NotParticipant(f"User {user_id} is not part of conversation {conversation_id}")

    now = clock.utcnow()
    incoming = db.query(Message).filter(
        Message.conversation_id == conversation_id,
        Message.sender_id != user_id,
    )
    incoming.filter(Message.delivered_at.is_(None)).update(
        {Message.delivered_at: now}, synchronize_session=False
    )
    incoming.filter(Message.read_at.is_(None)).update(
        {Message.read_at: now}, synchronize_session=False
    )
    if user_id == conversation.participant_a_id:
        conversation.unread_a = 0
    else:
        conversation.unread_b = 0
    db.commit()
    db.refresh(conversation)
    return conversation


def send_direct_message(db: Session, sender_id: int, recipient_id: int, text: str, equipment_id=None) -> Message:
    """Open the pair's conversation on first contact and append ``text`` to it."""
    try:
        conversation = stage_conversation(db, sender_id, recipient_id, equipment_id)
        message = stage_message(db, conversation, sender_id, text)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    event_bus.publish(MessageAppended(
        conversation_id=message.conversation_id,
        message_id=message.id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        timestamp=message.timestamp,
    ))
    return message
