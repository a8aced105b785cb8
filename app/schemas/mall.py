from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Optional


class MallRead(BaseModel):
    id: UUID
    name: str
    location: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
