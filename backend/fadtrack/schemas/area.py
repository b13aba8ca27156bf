"""Area schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AreaWrite(BaseModel):
    name: str = Field(..., max_length=191)

    @field_validator('name')
    @classmethod
    def name_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Area name is required')
        return v


class AreaResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
