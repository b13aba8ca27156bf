"""Area routes"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from fadtrack.core.database import get_db
from fadtrack.schemas.area import AreaWrite, AreaResponse
from fadtrack.services.area_service import area_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, client_ip
from fadtrack.models.user import User

router = APIRouter()


@router.get("/", response_model=List[AreaResponse])
def list_areas(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List areas ordered by name"""
    return area_service.list_areas(db)


@router.post("/", response_model=AreaResponse, status_code=status.HTTP_201_CREATED)
def create_area(
    data: AreaWrite,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create an area, or return the existing one with the same name"""
    area = area_service.create_area(db, data.name)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="create_area",
        target_type="area",
        target_id=area.id,
        ip_address=client_ip(request),
        metadata={"name": area.name},
    )
    return area


@router.put("/{area_id}", response_model=AreaResponse)
def update_area(
    area_id: int,
    data: AreaWrite,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    area = area_service.update_area(db, area_id, data.name)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="update_area",
        target_type="area",
        target_id=area.id,
        ip_address=client_ip(request),
        metadata={"name": area.name},
    )
    return area


@router.delete("/{area_id}", status_code=status.HTTP_200_OK)
def delete_area(
    area_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an area that no photo references"""
    area = area_service.delete_area(db, area_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_area",
        target_type="area",
        target_id=area_id,
        ip_address=client_ip(request),
        metadata={"name": area.name},
    )
    return {"success": True, "message": "Area deleted"}
