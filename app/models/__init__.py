from app.models.profile import Profile
from app.models.business import Business
from app.models.mall import Mall
from app.models.booking import Booking
from app.models.message import Message

__all__ = [
    "Profile",
    "Business",
    "Mall",
    "Booking",
    "Message",
]
