from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime


class ConversationCreate(BaseModel):
    title: Optional[str] = None
    participant_ids: List[str]


class ParticipantResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class ConversationResponse(BaseModel):
    id: str
    title: str
    last_message_preview: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    participants: List[ParticipantResponse] = []

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    conversation_id: str
    content: str = Field(..., min_length=1)
    attachments: Optional[List[Any]] = None


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    attachments: Optional[List[Any]] = None
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True
