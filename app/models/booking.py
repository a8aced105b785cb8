import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)
    mall_id = Column(UUID(as_uuid=True), ForeignKey("malls.id"), nullable=False, index=True)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(String(5), nullable=False)  # "HH:MM"
    status = Column(String(16), nullable=False, default=STATUS_PENDING)  # pending, confirmed, cancelled
    # Contact details copied from the customer's profile at booking time
    customer_name = Column(String, nullable=False, default="")
    customer_email = Column(String, nullable=False, default="")
    customer_phone = Column(String, nullable=False, default="")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    customer = relationship("Profile", back_populates="bookings", foreign_keys=[customer_id])
    business = relationship("Business", back_populates="bookings")
    mall = relationship("Mall", back_populates="bookings")
