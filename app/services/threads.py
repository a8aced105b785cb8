"""
Derive a viewer's conversations from the flat message log.

Threads are never stored. Each dashboard load scans the viewer's messages,
indexes them by unordered participant pair, then resolves every counterpart
against the directory for the viewer's role:

- business viewers only see counterparts whose profile is a customer;
- customer viewers only see counterparts that own a business, shown under
  the business name but still routed by the owner's identity.

Counterparts that fail resolution are dropped from the result and logged.
Messages between two customers or two businesses therefore never show up
in either dashboard.
"""

import logging
from datetime import datetime
from typing import Iterable, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import StoreReadError
from app.models.business import Business
from app.models.message import Message
from app.models.profile import Profile, USER_TYPE_BUSINESS, USER_TYPE_CUSTOMER
from app.schemas.message import ContactRead
from app.services.message_store import MessageStore

logger = logging.getLogger(__name__)


class ThreadSummary(BaseModel):
    """Per-counterpart aggregate over the viewer's messages."""
    counterpart_id: UUID
    message_count: int = 0
    unread_count: int = 0
    last_message_at: Optional[datetime] = None


class Resolved(BaseModel):
    outcome: Literal["resolved"] = "resolved"
    contact: ContactRead


class Dropped(BaseModel):
    outcome: Literal["dropped"] = "dropped"
    counterpart_id: UUID
    reason: str


Resolution = Union[Resolved, Dropped]


def thread_key(a: UUID, b: UUID) -> frozenset:
    """Identity of the thread between two participants, independent of direction."""
    return frozenset((a, b))


def index_threads(messages: Iterable[Message], viewer_id: UUID) -> dict[frozenset, ThreadSummary]:
    """
    Group the viewer's messages by participant pair.

    Unread counts only include messages sent by the counterpart to the
    viewer that are still unread. Messages the viewer sent to themselves
    are ignored.
    """
    index: dict[frozenset, ThreadSummary] = {}
    for msg in messages:
        if msg.sender_id != viewer_id and msg.receiver_id != viewer_id:
            continue
        other_id = msg.receiver_id if msg.sender_id == viewer_id else msg.sender_id
        if other_id == viewer_id:
            continue
        key = thread_key(viewer_id, other_id)
        summary = index.get(key)
        if summary is None:
            summary = ThreadSummary(counterpart_id=other_id)
            index[key] = summary
        summary.message_count += 1
        if msg.sender_id == other_id and msg.receiver_id == viewer_id and not msg.read:
            summary.unread_count += 1
        if summary.last_message_at is None or (msg.created_at and msg.created_at > summary.last_message_at):
            summary.last_message_at = msg.created_at
    return index


def _resolve_customers(db: Session, summaries: list[ThreadSummary]) -> list[Resolution]:
    ids = [s.counterpart_id for s in summaries]
    profiles = (
        db.query(Profile)
        .filter(Profile.id.in_(ids), Profile.user_type == USER_TYPE_CUSTOMER)
        .all()
    )
    by_id = {p.id: p for p in profiles}
    outcomes: list[Resolution] = []
    for summary in summaries:
        profile = by_id.get(summary.counterpart_id)
        if profile is None:
            outcomes.append(Dropped(counterpart_id=summary.counterpart_id, reason="not a customer"))
            continue
        outcomes.append(Resolved(contact=ContactRead(
            counterpart_id=profile.id,
            display_name=profile.full_name or profile.email or "Customer",
            unread_count=summary.unread_count,
            last_message_at=summary.last_message_at,
        )))
    return outcomes


def _resolve_businesses(db: Session, summaries: list[ThreadSummary]) -> list[Resolution]:
    ids = [s.counterpart_id for s in summaries]
    businesses = (
        db.query(Business)
        .options(joinedload(Business.owner))
        .filter(Business.owner_id.in_(ids))
        .all()
    )
    by_owner = {b.owner_id: b for b in businesses}
    outcomes: list[Resolution] = []
    for summary in summaries:
        business = by_owner.get(summary.counterpart_id)
        if business is None:
            outcomes.append(Dropped(counterpart_id=summary.counterpart_id, reason="owns no business"))
            continue
        outcomes.append(Resolved(contact=ContactRead(
            counterpart_id=business.owner_id,
            display_name=business.business_name,
            unread_count=summary.unread_count,
            last_message_at=summary.last_message_at,
            business_id=business.id,
            owner_name=business.owner.full_name if business.owner else None,
        )))
    return outcomes


def resolve_counterparts(db: Session, role: str, summaries: list[ThreadSummary]) -> list[Resolution]:
    """Resolve each counterpart against the directory for the viewer's role."""
    if not summaries:
        return []
    if role == USER_TYPE_BUSINESS:
        return _resolve_customers(db, summaries)
    return _resolve_businesses(db, summaries)


def _sort_contacts(contacts: list[ContactRead]) -> list[ContactRead]:
    # Most recent conversation first; name breaks ties
    ordered = sorted(contacts, key=lambda c: c.display_name.lower())
    return sorted(
        ordered,
        key=lambda c: c.last_message_at.timestamp() if c.last_message_at else float("-inf"),
        reverse=True,
    )


def derive_contacts(db: Session, viewer_id: UUID, role: str) -> list[ContactRead]:
    """
    Contacts for the viewer's dashboard with per-contact unread counts.

    Fails soft: if the message fetch or directory lookup errors, an empty
    list is returned so the dashboard still renders.
    """
    store = MessageStore(db)
    try:
        messages = store.fetch_for_viewer(viewer_id)
    except StoreReadError:
        return []

    summaries = list(index_threads(messages, viewer_id).values())
    try:
        outcomes = resolve_counterparts(db, role, summaries)
    except SQLAlchemyError as e:
        logger.warning("Contact resolution failed for viewer_id=%s: %s", viewer_id, e)
        return []

    contacts: list[ContactRead] = []
    for outcome in outcomes:
        if isinstance(outcome, Dropped):
            logger.debug(
                "Dropped contact counterpart_id=%s for viewer_id=%s: %s",
                outcome.counterpart_id,
                viewer_id,
                outcome.reason,
            )
            continue
        contacts.append(outcome.contact)
    return _sort_contacts(contacts)


def total_unread(contacts: Iterable[ContactRead]) -> int:
    """Dashboard badge total: the sum of the per-contact unread counts."""
    return sum(c.unread_count for c in contacts)
