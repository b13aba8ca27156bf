"""Audit event response schemas."""

from datetime import datetime
from typing import Optional, Dict, Any, List

from pydantic import BaseModel


class AuditEventResponse(BaseModel):
    id: int
    user_id: Optional[str]
    username: Optional[str] = None
    action: str
    target_type: Optional[str]
    target_id: Optional[str]
    ip_address: Optional[str]
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime]


class AuditEventPage(BaseModel):
    logs: List[AuditEventResponse]
    total: int
    page: int
    pageSize: int
    totalPages: int


class LastUpdateResponse(BaseModel):
    target_type: str
    last_update: Optional[datetime] = None
