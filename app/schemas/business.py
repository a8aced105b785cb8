from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Optional


class BusinessRead(BaseModel):
    id: UUID
    owner_id: UUID
    business_name: str
    username: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BusinessOwnerRead(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BusinessReadWithOwner(BusinessRead):
    owner: Optional[BusinessOwnerRead] = None

    model_config = ConfigDict(from_attributes=True)
