"""FAD document and vendor schemas"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

NO_FAD_PATTERN = re.compile(r'^[A-Z0-9/\-.\s]+$')


class FadWrite(BaseModel):
    """
    Create/update payload.

    Date fields are kept as raw text here; the service parses them
    leniently (unparsable values become null).
    """
    no_fad: Optional[str] = Field(None, alias="noFad", max_length=100)
    item: Optional[str] = Field(None, max_length=255)
    plant: Optional[str] = Field(None, max_length=100)
    terima_fad: Optional[str] = Field(None, alias="terimaFad")
    terima_bbm: Optional[str] = Field(None, alias="terimaBbm")
    vendor: Optional[str] = Field(None, max_length=191)
    status: Optional[str] = Field(None, max_length=100)
    deskripsi: Optional[str] = None
    keterangan: Optional[str] = None
    bast: Optional[str] = None

    class Config:
        populate_by_name = True


class VendorSummary(BaseModel):
    id: int
    name: str
    active: bool

    class Config:
        from_attributes = True


class FadResponse(BaseModel):
    id: str
    no_fad: str = ""
    item: str = ""
    plant: str = ""
    terima_fad: Optional[datetime] = None
    terima_bbm: Optional[datetime] = None
    vendor: str = ""
    vendor_id: Optional[int] = None
    status: str = ""
    deskripsi: str = ""
    keterangan: str = ""
    bast: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    vendor_rel: Optional[VendorSummary] = None

    class Config:
        from_attributes = True

    @field_validator('no_fad', 'item', 'plant', 'vendor', 'status', 'deskripsi', 'keterangan', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v


class FadPageMeta(BaseModel):
    total: int
    page: int
    limit: int


class FadPage(BaseModel):
    data: List[FadResponse]
    meta: FadPageMeta


class FadUpdateResponse(BaseModel):
    message: str = "Data updated successfully"
    data: FadResponse
    changes: Dict[str, Dict[str, Any]] = {}


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=191)
    active: bool = True

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Vendor name is required')
        return v


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=191)
    active: Optional[bool] = None


class VendorResponse(VendorSummary):
    created_at: Optional[datetime] = None
