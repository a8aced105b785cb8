"""Direct messages between two profiles."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Boolean, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Message(Base):
    """
    One directed text message. Rows are append-only; the only mutable column
    is ``read``, flipped to true by the receiver when they open the thread.
    """

    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    body = Column("message", Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    # Set client-side so messages sent within the same second still sort in send order
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_messages_receiver_sender_read", "receiver_id", "sender_id", "read"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, sender_id={self.sender_id}, receiver_id={self.receiver_id}, read={self.read})>"
