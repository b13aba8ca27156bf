"""Audit sink: one immutable trail for every data change."""

from __future__ import annotations

import json
import math
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, List

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from fadtrack.core.dates import end_of_day, parse_datetime, start_of_day
from fadtrack.models.audit import AuditEvent


class AuditService:
    """Persist and query audit trail entries."""

    @staticmethod
    def log_event(
        db: Session,
        *,
        user_id: Optional[str],
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            user_id=user_id,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            ip_address=ip_address,
            metadata_json=json.dumps(metadata or {}, ensure_ascii=False, default=str),
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def list_events(
        db: Session,
        *,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[AuditEvent], int]:
        query = db.query(AuditEvent)
        if action:
            query = query.filter(AuditEvent.action == action)
        if target_type:
            query = query.filter(AuditEvent.target_type == target_type)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    AuditEvent.action.ilike(pattern),
                    AuditEvent.target_type.ilike(pattern),
                    AuditEvent.target_id.ilike(pattern),
                )
            )
        start = parse_datetime(date_from)
        if start:
            query = query.filter(AuditEvent.created_at >= start_of_day(start))
        end = parse_datetime(date_to)
        if end:
            query = query.filter(AuditEvent.created_at <= end_of_day(end))

        total = query.count()
        events = (
            query.options(joinedload(AuditEvent.user))
            .order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return events, total

    @staticmethod
    def last_update(db: Session, target_type: str) -> Optional[datetime]:
        latest = (
            db.query(AuditEvent)
            .filter(AuditEvent.target_type == target_type)
            .order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
            .first()
        )
        return latest.created_at if latest else None

    @staticmethod
    def total_pages(total: int, page_size: int) -> int:
        return math.ceil(total / page_size) if page_size else 0


audit_service = AuditService()
