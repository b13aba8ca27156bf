"""Program info image schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProgramInfoResponse(BaseModel):
    id: int
    title: Optional[str] = None
    filename: str
    thumb_filename: Optional[str] = None
    original_name: Optional[str] = None
    url: str
    thumb_url: Optional[str] = None
    mime: Optional[str] = None
    size: Optional[int] = None
    display_order: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProgramInfoUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=191)
    display_order: Optional[int] = Field(None, ge=0)


class DisplayOrderItem(BaseModel):
    id: int
    display_order: int = Field(..., ge=0)


class DisplayOrderUpdate(BaseModel):
    image_orders: List[DisplayOrderItem] = Field(..., min_length=1)
