from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import date, datetime
from typing import Literal, Optional


class BookingCreate(BaseModel):
    business_id: UUID
    mall_id: UUID
    booking_date: date
    booking_time: str = Field(..., description="Time slot, HH:MM (09:00 to 18:00 on the hour)")


class BookingStatusUpdate(BaseModel):
    status: Literal["confirmed", "cancelled"]


class BookingMallRead(BaseModel):
    name: str
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookingRead(BaseModel):
    id: UUID
    customer_id: UUID
    business_id: UUID
    mall_id: UUID
    booking_date: date
    booking_time: str
    status: str  # pending, confirmed, cancelled
    customer_name: str
    customer_email: str
    customer_phone: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    mall: Optional[BookingMallRead] = None

    model_config = ConfigDict(from_attributes=True)
