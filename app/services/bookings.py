"""
Booking creation and status changes.

Creating a booking is two independent writes: the booking row is committed
first, then the owner notification is appended. The second write never
undoes the first.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import (
    BookingValidationError,
    InvalidStatusTransition,
    NotFoundError,
    StoreWriteError,
)
from app.models.booking import Booking, STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED
from app.models.business import Business
from app.models.mall import Mall
from app.models.profile import Profile
from app.services.booking_notifier import notify_booking_created
from app.services.message_store import MessageStore

logger = logging.getLogger(__name__)

TIME_SLOTS = (
    "09:00", "10:00", "11:00", "12:00", "13:00",
    "14:00", "15:00", "16:00", "17:00", "18:00",
)

# pending is the only state with exits; confirmed and cancelled are final
ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: set(),
    STATUS_CANCELLED: set(),
}


def can_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def create_booking(
    db: Session,
    customer: Profile,
    business_id: UUID,
    mall_id: UUID,
    booking_date: date,
    booking_time: str,
    today: Optional[date] = None,
) -> Booking:
    """
    Create a pending booking for the customer and notify the business owner.

    Raises BookingValidationError / NotFoundError before any write, and
    StoreWriteError if the booking insert itself fails.
    """
    if customer.is_business:
        raise BookingValidationError("Only customer accounts can make bookings")
    if booking_time not in TIME_SLOTS:
        raise BookingValidationError(f"booking_time must be one of {', '.join(TIME_SLOTS)}")
    if booking_date < (today or date.today()):
        raise BookingValidationError("booking_date cannot be in the past")

    business = db.query(Business).filter(Business.id == business_id).first()
    if not business:
        raise NotFoundError("Business not found")
    mall = db.query(Mall).filter(Mall.id == mall_id).first()
    if not mall:
        raise NotFoundError("Mall not found")

    booking = Booking(
        customer_id=customer.id,
        business_id=business.id,
        mall_id=mall.id,
        booking_date=booking_date,
        booking_time=booking_time,
        status=STATUS_PENDING,
        customer_name=customer.full_name or "",
        customer_email=customer.email or "",
        customer_phone=customer.phone or "",
    )
    db.add(booking)
    try:
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Booking insert failed for customer_id=%s business_id=%s: %s", customer.id, business_id, e)
        raise StoreWriteError(str(e)) from e

    logger.info(
        "Booking created: id=%s customer_id=%s business_id=%s date=%s time=%s",
        booking.id,
        customer.id,
        business.id,
        booking.booking_date,
        booking.booking_time,
    )
    notify_booking_created(MessageStore(db), booking, customer, business, mall)
    return booking


def _owned_booking(db: Session, actor: Profile, booking_id: UUID) -> Booking:
    # Rows of other businesses are treated as invisible, as row-level security would
    booking = (
        db.query(Booking)
        .join(Business, Booking.business_id == Business.id)
        .filter(Booking.id == booking_id, Business.owner_id == actor.id)
        .first()
    )
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def update_booking_status(db: Session, actor: Profile, booking_id: UUID, new_status: str) -> Booking:
    """Move a pending booking to confirmed or cancelled. Only the owning business may do this."""
    booking = _owned_booking(db, actor, booking_id)
    if not can_transition(booking.status, new_status):
        logger.info(
            "Rejected booking status change id=%s %s -> %s", booking.id, booking.status, new_status
        )
        raise InvalidStatusTransition(booking.status, new_status)

    # Conditional on the source status: 0 rows means another request changed it first
    sources = [s for s, targets in ALLOWED_TRANSITIONS.items() if new_status in targets]
    previous = booking.status
    try:
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking.id, Booking.status.in_(sources))
            .update({Booking.status: new_status}, synchronize_session=False)
        )
        if updated:
            db.commit()
        else:
            db.rollback()
        db.refresh(booking)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Booking status update failed id=%s: %s", booking_id, e)
        raise StoreWriteError(str(e)) from e

    if not updated:
        logger.info(
            "Rejected booking status change id=%s %s -> %s (changed concurrently)",
            booking.id,
            booking.status,
            new_status,
        )
        raise InvalidStatusTransition(booking.status, new_status)
    logger.info("Booking status changed id=%s %s -> %s", booking.id, previous, new_status)
    return booking


def list_bookings(db: Session, viewer: Profile) -> list[Booking]:
    """Bookings visible to the viewer, newest first."""
    query = db.query(Booking).options(joinedload(Booking.mall), joinedload(Booking.business))
    if viewer.is_business:
        query = query.join(Business, Booking.business_id == Business.id).filter(Business.owner_id == viewer.id)
    else:
        query = query.filter(Booking.customer_id == viewer.id)
    try:
        return query.order_by(Booking.created_at.desc()).all()
    except SQLAlchemyError as e:
        logger.warning("Booking list failed for viewer_id=%s: %s", viewer.id, e)
        return []
