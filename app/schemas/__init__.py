from app.schemas.profile import ProfileRead, MeRead
from app.schemas.business import BusinessRead, BusinessReadWithOwner
from app.schemas.mall import MallRead
from app.schemas.booking import BookingCreate, BookingRead, BookingStatusUpdate
from app.schemas.message import (
    MessageCreate,
    MessageRead,
    ContactRead,
    ContactListResponse,
    ThreadRead,
    UnreadCountResponse,
)

__all__ = [
    "ProfileRead",
    "MeRead",
    "BusinessRead",
    "BusinessReadWithOwner",
    "MallRead",
    "BookingCreate",
    "BookingRead",
    "BookingStatusUpdate",
    "MessageCreate",
    "MessageRead",
    "ContactRead",
    "ContactListResponse",
    "ThreadRead",
    "UnreadCountResponse",
]
