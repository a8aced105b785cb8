from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Optional


class MessageCreate(BaseModel):
    body: str = Field(..., description="Message text; whitespace-only bodies are rejected")


class MessageRead(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    body: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactRead(BaseModel):
    """A counterpart the viewer has exchanged messages with."""
    counterpart_id: UUID  # raw identity used for message routing
    display_name: str
    unread_count: int = 0
    last_message_at: Optional[datetime] = None
    business_id: Optional[UUID] = None  # set when the counterpart is a business owner
    owner_name: Optional[str] = None  # business owner's own name, alongside the business name


class ContactListResponse(BaseModel):
    contacts: list[ContactRead] = []
    total_unread: int = 0


class ThreadRead(BaseModel):
    """Response for opening (or sending into) a conversation."""
    counterpart_id: UUID
    messages: list[MessageRead] = []
    marked_read: int = 0  # rows flipped to read by this open


class UnreadCountResponse(BaseModel):
    total_unread: int = 0
