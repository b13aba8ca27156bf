"""FAD document and vendor routes"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from fadtrack.core.database import get_db
from fadtrack.schemas.fad import (
    FadPage,
    FadPageMeta,
    FadResponse,
    FadUpdateResponse,
    FadWrite,
    VendorCreate,
    VendorResponse,
    VendorUpdate,
)
from fadtrack.services.fad_service import fad_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, require_roles, client_ip
from fadtrack.models.user import User

router = APIRouter()


@router.get("/fads", response_model=FadPage)
def list_fads(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    fields: Optional[str] = Query(None, description="Comma separated field names to search"),
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Search FAD records

    A search term that looks like a day or a month also matches the
    date columns; text columns are always matched.
    """
    field_list = fields.split(",") if fields else None
    rows, total = fad_service.list_fads(
        db, search=search, page=page, limit=limit, fields=field_list, status=status_filter
    )
    return FadPage(
        data=[FadResponse.model_validate(r) for r in rows],
        meta=FadPageMeta(total=total, page=page, limit=limit),
    )


@router.get("/fads/{fad_id}", response_model=FadResponse)
def get_fad(
    fad_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return fad_service.get_fad(db, fad_id)


@router.post("/fads", response_model=FadResponse, status_code=status.HTTP_201_CREATED)
def create_fad(
    data: FadWrite,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    fad = fad_service.create_fad(db, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="create_fad",
        target_type="fad",
        target_id=fad.id,
        ip_address=client_ip(request),
        metadata={"no_fad": fad.no_fad},
    )
    return fad_service.get_fad(db, fad.id)


@router.put("/fads/{fad_id}", response_model=FadUpdateResponse)
def update_fad(
    fad_id: str,
    data: FadWrite,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """Partial update; the response lists every changed field"""
    fad, changes = fad_service.update_fad(db, fad_id, data)
    if changes:
        audit_service.log_event(
            db,
            user_id=current_user.id,
            action="update_fad",
            target_type="fad",
            target_id=fad_id,
            ip_address=client_ip(request),
            metadata={"changes": changes},
        )
    return FadUpdateResponse(
        data=FadResponse.model_validate(fad_service.get_fad(db, fad_id)),
        changes=changes,
    )


@router.delete("/fads/{fad_id}", status_code=status.HTTP_200_OK)
def delete_fad(
    fad_id: str,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    fad = fad_service.delete_fad(db, fad_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_fad",
        target_type="fad",
        target_id=fad_id,
        ip_address=client_ip(request),
        metadata={"no_fad": fad.no_fad},
    )
    return {"success": True, "message": "Data deleted successfully"}


@router.get("/vendors", response_model=List[VendorResponse])
def list_vendors(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return fad_service.list_vendors(db)


@router.post("/vendors", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
def create_vendor(
    data: VendorCreate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    vendor = fad_service.create_vendor(db, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="create_vendor",
        target_type="vendor",
        target_id=vendor.id,
        ip_address=client_ip(request),
        metadata={"name": vendor.name},
    )
    return vendor


@router.put("/vendors/{vendor_id}", response_model=VendorResponse)
def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    vendor = fad_service.update_vendor(db, vendor_id, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="update_vendor",
        target_type="vendor",
        target_id=vendor.id,
        ip_address=client_ip(request),
        metadata=data.model_dump(exclude_unset=True),
    )
    return vendor


@router.delete("/vendors/{vendor_id}", status_code=status.HTTP_200_OK)
def delete_vendor(
    vendor_id: int,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    vendor = fad_service.delete_vendor(db, vendor_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_vendor",
        target_type="vendor",
        target_id=vendor_id,
        ip_address=client_ip(request),
        metadata={"name": vendor.name},
    )
    return {"success": True, "message": "Vendor deleted successfully"}
