"""Admin routes - audit trail and session forensics"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import json

from fadtrack.core.database import get_db
from fadtrack.schemas.audit import AuditEventPage, AuditEventResponse, LastUpdateResponse
from fadtrack.services.audit_service import audit_service
from fadtrack.services.token_service import token_service
from fadtrack.api.deps import require_roles
from fadtrack.models.user import User

router = APIRouter()


@router.get("/audit-events", response_model=AuditEventPage)
def get_audit_events(
    action: Optional[str] = None,
    target_type: Optional[str] = Query(None, alias="targetType"),
    search: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500, alias="pageSize"),
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    """List audit trail entries, newest first."""
    events, total = audit_service.list_events(
        db,
        action=action,
        target_type=target_type,
        search=search,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    rows = []
    for ev in events:
        metadata = {}
        if ev.metadata_json:
            try:
                metadata = json.loads(ev.metadata_json)
            except json.JSONDecodeError:
                metadata = {"raw": ev.metadata_json}
        rows.append(
            AuditEventResponse(
                id=ev.id,
                user_id=ev.user_id,
                username=ev.user.username if ev.user else None,
                action=ev.action,
                target_type=ev.target_type,
                target_id=ev.target_id,
                ip_address=ev.ip_address,
                metadata=metadata,
                created_at=ev.created_at,
            )
        )
    return AuditEventPage(
        logs=rows,
        total=total,
        page=page,
        pageSize=page_size,
        totalPages=audit_service.total_pages(total, page_size),
    )


@router.get("/audit-events/last", response_model=LastUpdateResponse)
def get_last_update(
    target_type: str = Query(..., alias="targetType"),
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    """Timestamp of the newest audit event for a target type."""
    return LastUpdateResponse(target_type=target_type, last_update=audit_service.last_update(db, target_type))


@router.get("/sessions/{session_id}/chain")
def get_session_chain(
    session_id: str,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    """Follow a refresh session's replacement chain forward."""
    chain = token_service.session_chain(db, session_id)
    return {
        "session_id": session_id,
        "length": len(chain),
        "chain": [
            {
                "id": s.id,
                "user_id": s.user_id,
                "revoked": s.revoked,
                "replaced_by_id": s.replaced_by_id,
                "created_at": s.created_at,
                "revoked_at": s.revoked_at,
                "expires_at": s.expires_at,
            }
            for s in chain
        ],
    }
