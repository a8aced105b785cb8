"""
Direct messaging between customers and business owners.

Conversations are derived from the message log on every request; there is no
conversation table. Opening a thread marks the counterpart's messages read.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth import get_current_profile
from app.core.errors import MessageValidationError, StoreReadError, StoreWriteError
from app.db.session import get_db
from app.models.profile import Profile
from app.schemas.message import (
    ContactListResponse,
    MessageCreate,
    MessageRead,
    ThreadRead,
    UnreadCountResponse,
)
from app.services.conversation import ConversationDialog
from app.services.message_store import MessageStore
from app.services.threads import derive_contacts, total_unread

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _contacts_response(db: Session, profile: Profile) -> ContactListResponse:
    contacts = derive_contacts(db, profile.id, profile.user_type)
    return ContactListResponse(contacts=contacts, total_unread=total_unread(contacts))


def _thread_response(dialog: ConversationDialog) -> ThreadRead:
    return ThreadRead(
        counterpart_id=dialog.counterpart_id,
        messages=[MessageRead.model_validate(m) for m in dialog.messages],
        marked_read=dialog.last_marked_read,
    )


def _dialog(db: Session, profile: Profile, counterpart_id: UUID) -> ConversationDialog:
    if counterpart_id == profile.id:
        raise HTTPException(status_code=400, detail="Cannot open a conversation with yourself")
    if not db.query(Profile).filter(Profile.id == counterpart_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    return ConversationDialog(MessageStore(db), profile.id, counterpart_id)


@router.get("/contacts", response_model=ContactListResponse)
def list_contacts(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """
    Dashboard contact list with per-contact unread counts and their total.
    Business accounts see customers; customer accounts see businesses.
    """
    return _contacts_response(db, current_profile)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Unread messages addressed to the viewer, from anyone."""
    try:
        count = MessageStore(db).count_unread(current_profile.id)
    except StoreReadError:
        count = 0
    return UnreadCountResponse(total_unread=count)


@router.get("/threads/{counterpart_id}", response_model=ThreadRead)
def open_thread(
    counterpart_id: UUID,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Full history with the counterpart, oldest first. Marks their messages to the viewer as read."""
    dialog = _dialog(db, current_profile, counterpart_id)
    dialog.open()
    return _thread_response(dialog)


@router.post("/threads/{counterpart_id}", response_model=ThreadRead, status_code=201)
def send_message(
    counterpart_id: UUID,
    body: MessageCreate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Send a message to the counterpart and return the refreshed thread."""
    dialog = _dialog(db, current_profile, counterpart_id)
    try:
        dialog.send(body.body)
    except MessageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreWriteError:
        raise HTTPException(status_code=503, detail="Failed to send message")
    return _thread_response(dialog)


@router.post("/threads/{counterpart_id}/close", response_model=ContactListResponse)
def close_thread(
    counterpart_id: UUID,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Close the conversation and return the refreshed contact list."""
    refreshed: list[ContactListResponse] = []
    dialog = _dialog(db, current_profile, counterpart_id)
    dialog.on_close = lambda: refreshed.append(_contacts_response(db, current_profile))
    dialog.close()
    return refreshed[0]
