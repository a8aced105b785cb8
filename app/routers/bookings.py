import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.auth import get_current_profile, require_business
from app.core.errors import (
    BookingValidationError,
    InvalidStatusTransition,
    NotFoundError,
    StoreWriteError,
)
from app.db.session import get_db
from app.models.profile import Profile
from app.schemas.booking import BookingCreate, BookingRead, BookingStatusUpdate
from app.services import bookings as booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=201)
def create_booking(
    body: BookingCreate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """
    Book an appointment with a business at a mall.

    The booking is created with status "pending" and a summary message is sent
    to the business owner. If that message fails the booking still succeeds.
    """
    try:
        return booking_service.create_booking(
            db,
            current_profile,
            business_id=body.business_id,
            mall_id=body.mall_id,
            booking_date=body.booking_date,
            booking_time=body.booking_time,
        )
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreWriteError:
        raise HTTPException(status_code=503, detail="Failed to create booking")


@router.get("", response_model=list[BookingRead])
def list_bookings(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Customers get their own bookings; business accounts get their business's bookings."""
    return booking_service.list_bookings(db, current_profile)


@router.patch("/{booking_id}/status", response_model=BookingRead)
def update_booking_status(
    booking_id: UUID,
    body: BookingStatusUpdate,
    current_profile: Profile = Depends(require_business),
    db: Session = Depends(get_db),
):
    """Confirm or cancel a pending booking. Confirmed and cancelled bookings are final."""
    try:
        return booking_service.update_booking_status(db, current_profile, booking_id, body.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(
            status_code=409,
            detail={"error": "invalid_status_transition", "message": str(e), "status": e.current},
        )
    except StoreWriteError:
        raise HTTPException(status_code=503, detail="Failed to update booking")
