from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base

USER_TYPE_CUSTOMER = "customer"
USER_TYPE_BUSINESS = "business"
USER_TYPES = (USER_TYPE_CUSTOMER, USER_TYPE_BUSINESS)


class Profile(Base):
    __tablename__ = "profiles"

    # Same value as the Supabase auth user id (JWT sub); no default on purpose
    id = Column(UUID(as_uuid=True), primary_key=True)
    full_name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    user_type = Column(String(16), nullable=False, default=USER_TYPE_CUSTOMER, index=True)  # customer | business
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    business = relationship("Business", back_populates="owner", uselist=False)
    bookings = relationship("Booking", back_populates="customer", foreign_keys="Booking.customer_id")

    @property
    def is_business(self) -> bool:
        return self.user_type == USER_TYPE_BUSINESS
