"""
Booking request notification sent from the customer to the business owner.

Best effort: the booking is already committed when this runs, so a failed
insert is logged and swallowed rather than rolled back.
"""

import logging
from datetime import date
from typing import Optional

from app.core.config import settings
from app.core.errors import StoreWriteError
from app.models.booking import Booking
from app.models.business import Business
from app.models.mall import Mall
from app.models.message import Message
from app.models.profile import Profile
from app.services.message_store import MessageStore

logger = logging.getLogger(__name__)

BOOKING_MESSAGE_TEMPLATE = (
    "\U0001F4C5 New Booking Request!\n\n"
    "Customer: {name}\n"
    "Email: {email}\n"
    "Phone: {phone}\n\n"
    "Date: {date}\n"
    "Time: {time}\n"
    "Mall: {mall}\n\n"
    "Please confirm or decline this booking from your dashboard."
)


def format_booking_date(value: date, fmt: Optional[str] = None) -> str:
    """Long-form date, e.g. 'Saturday, 01 March 2025' with the default format."""
    return value.strftime(fmt or settings.booking_date_format)


def compose_booking_message(
    booking: Booking,
    customer_profile: Optional[Profile],
    mall: Optional[Mall],
) -> str:
    def _or_na(value: Optional[str]) -> str:
        return value if value else "N/A"

    return BOOKING_MESSAGE_TEMPLATE.format(
        name=_or_na(customer_profile.full_name if customer_profile else None),
        email=_or_na(customer_profile.email if customer_profile else None),
        phone=_or_na(customer_profile.phone if customer_profile else None),
        date=format_booking_date(booking.booking_date),
        time=booking.booking_time,
        mall=_or_na(mall.name if mall else None),
    )


def notify_booking_created(
    store: MessageStore,
    booking: Booking,
    customer_profile: Optional[Profile],
    business: Business,
    mall: Optional[Mall],
) -> Optional[Message]:
    """Append the booking summary as a message to the business owner. Returns None on failure."""
    body = compose_booking_message(booking, customer_profile, mall)
    try:
        message = store.append(booking.customer_id, business.owner_id, body)
    except StoreWriteError as e:
        logger.error(
            "Failed to send booking notification for booking_id=%s to owner_id=%s: %s",
            booking.id,
            business.owner_id,
            e,
        )
        return None
    logger.info("Booking notification sent: booking_id=%s message_id=%s", booking.id, message.id)
    return message
