from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.clock import utcnow


class Conversation(Base):
    """Thread between an unordered pair of users.

    The pair is stored ordered (participant_a_id < participant_b_id) so the
    unique constraint covers both directions.
    """

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    participant_a_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    participant_b_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=True)
    last_message = Column(Text, nullable=True)
    last_message_at = Column(DateTime, nullable=True)
    unread_a = Column(Integer, nullable=False, default=0)
    unread_b = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint(
            "participant_a_id", "participant_b_id", name="uq_conversation_pair"
        ),
        CheckConstraint(
            "participant_a_id < participant_b_id", name="check_conversation_pair_order"
        ),
    )

    def has_participant(self, user_id):
        return user_id in (self.participant_a_id, self.participant_b_id)

    def other_participant(self, user_id):
        if user_id == self.participant_a_id:
            return self.participant_b_id
        return self.participant_a_id

    def unread_for(self, user_id):
        if user_id == self.participant_a_id:
            return self.unread_a
        return self.unread_b


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    delivered_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)

    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        Index("ix_messages_conversation_timestamp", "conversation_id", "timestamp"),
    )
