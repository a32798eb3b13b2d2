from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class ConversationCreate(BaseModel):
    user_id: int
    other_user_id: int
    equipment_id: Optional[int] = None


class ConversationResponse(BaseModel):
    id: int
    participant_a_id: int
    participant_b_id: int
    equipment_id: Optional[int] = None
    other_user_id: int
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    unread_count: int


class MessageCreate(BaseModel):
    sender_id: int
    text: str


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    text: str
    timestamp: datetime
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReadRequest(BaseModel):
    user_id: int
