"""
Filtered reads and writes over the ``messages`` table.

Every call takes the acting viewer's id explicitly. The filters mirror the
row-level security policies on the table (see the messages RLS migration):
a viewer only reads rows they take part in, only inserts rows they send,
and only flips ``read`` on rows they received.
"""

import logging
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreReadError, StoreWriteError
from app.models.message import Message

logger = logging.getLogger(__name__)


def _pair_filter(a: UUID, b: UUID):
    return or_(
        and_(Message.sender_id == a, Message.receiver_id == b),
        and_(Message.sender_id == b, Message.receiver_id == a),
    )


class MessageStore:
    """Message log access bound to one database session."""

    def __init__(self, db: Session):
        self.db = db

    def fetch_for_viewer(self, viewer_id: UUID) -> list[Message]:
        """All messages the viewer sent or received. Unbounded."""
        try:
            return (
                self.db.query(Message)
                .filter(or_(Message.sender_id == viewer_id, Message.receiver_id == viewer_id))
                .order_by(Message.created_at.asc(), Message.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning("Message fetch failed for viewer_id=%s: %s", viewer_id, e)
            raise StoreReadError(str(e)) from e

    def fetch_thread(self, viewer_id: UUID, counterpart_id: UUID) -> list[Message]:
        """Messages between the two participants, oldest first."""
        try:
            return (
                self.db.query(Message)
                .filter(_pair_filter(viewer_id, counterpart_id))
                .order_by(Message.created_at.asc(), Message.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning(
                "Thread fetch failed viewer_id=%s counterpart_id=%s: %s", viewer_id, counterpart_id, e
            )
            raise StoreReadError(str(e)) from e

    def count_unread(self, viewer_id: UUID) -> int:
        try:
            return (
                self.db.query(Message)
                .filter(Message.receiver_id == viewer_id, Message.read.is_(False))
                .count()
            )
        except SQLAlchemyError as e:
            logger.warning("Unread count failed for viewer_id=%s: %s", viewer_id, e)
            raise StoreReadError(str(e)) from e

    def mark_thread_read(self, viewer_id: UUID, counterpart_id: UUID) -> int:
        """
        Flip ``read`` on the counterpart's unread messages to the viewer.

        Only rows with ``receiver_id = viewer`` and ``read = false`` are
        touched, so repeating the call is a no-op and the flag never goes
        back to false. Returns the number of rows updated.
        """
        try:
            updated = (
                self.db.query(Message)
                .filter(
                    Message.sender_id == counterpart_id,
                    Message.receiver_id == viewer_id,
                    Message.read.is_(False),
                )
                .update({Message.read: True}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Mark-read failed viewer_id=%s counterpart_id=%s: %s", viewer_id, counterpart_id, e
            )
            raise StoreWriteError(str(e)) from e
        if updated:
            logger.debug("Marked %d message(s) read for viewer_id=%s", updated, viewer_id)
        return updated

    def append(self, viewer_id: UUID, receiver_id: UUID, body: str) -> Message:
        """Insert a new unread message sent by the viewer."""
        message = Message(sender_id=viewer_id, receiver_id=receiver_id, body=body, read=False)
        self.db.add(message)
        try:
            self.db.commit()
            self.db.refresh(message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Message insert failed sender_id=%s receiver_id=%s: %s", viewer_id, receiver_id, e)
            raise StoreWriteError(str(e)) from e
        logger.info("Message sent: id=%s sender_id=%s receiver_id=%s", message.id, viewer_id, receiver_id)
        return message
