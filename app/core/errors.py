"""Domain exceptions for messaging and bookings.

Services raise these; routers translate them into HTTP responses.
"""


class MessagingError(Exception):
    """Base class for errors raised by the messaging and booking services."""


class MessageValidationError(MessagingError):
    """Message body rejected locally; nothing was sent to the store."""


class BookingValidationError(MessagingError):
    """Booking request rejected locally; nothing was written."""


class NotFoundError(MessagingError):
    """Row does not exist or is not visible to the acting identity."""


class InvalidStatusTransition(MessagingError):
    """Booking status change not allowed from the current status."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from {current!r} to {requested!r}")


class StoreReadError(MessagingError):
    """A read against the store failed."""


class StoreWriteError(MessagingError):
    """A write against the store failed; the session was rolled back."""
