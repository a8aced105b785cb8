from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Optional


class ProfileRead(BaseModel):
    id: UUID
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    user_type: str  # customer | business
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MeRead(ProfileRead):
    """Response model for GET /me. business_id is set for business accounts with a business."""
    business_id: Optional[UUID] = None
