"""Comparison group routes"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from fadtrack.core.database import get_db
from fadtrack.core.storage import FileStorage
from fadtrack.schemas.photo import (
    GroupCreate,
    GroupPage,
    GroupResponse,
    GroupStatusResponse,
    GroupUpdate,
    group_status_payload,
)
from fadtrack.services.photo_service import photo_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, get_storage, client_ip
from fadtrack.models.user import User

router = APIRouter()


def _status(group) -> GroupStatusResponse:
    counts, complete = photo_service.group_status(group)
    return group_status_payload(group, counts, complete)


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    data: GroupCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create an empty comparison group under an area (id or name)"""
    group = photo_service.create_group(db, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="create_group",
        target_type="comparison_group",
        target_id=group.id,
        ip_address=client_ip(request),
        metadata={"title": group.title, "area_id": group.area_id},
    )
    return GroupResponse.model_validate(group)


@router.get("/", response_model=GroupPage)
def list_groups(
    area_id: Optional[int] = Query(None, alias="areaId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List groups, newest first, with per-category counts and completion"""
    groups, total = photo_service.list_groups(db, area_id=area_id, page=page, page_size=page_size)
    return GroupPage(total=total, items=[_status(g) for g in groups], page=page, pageSize=page_size)


@router.get("/{group_id}", response_model=GroupStatusResponse)
def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _status(photo_service.get_group(db, group_id))


@router.put("/{group_id}", response_model=GroupStatusResponse)
def update_group(
    group_id: int,
    data: GroupUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    group = photo_service.update_group(db, group_id, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="update_group",
        target_type="comparison_group",
        target_id=group.id,
        ip_address=client_ip(request),
        metadata={"fields": sorted(data.model_dump(exclude_unset=True))},
    )
    return _status(photo_service.get_group(db, group_id))


@router.delete("/{group_id}", status_code=status.HTTP_200_OK)
def delete_group(
    group_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """Delete a group, its photos and their files"""
    removed = photo_service.delete_group(db, storage, group_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_group",
        target_type="comparison_group",
        target_id=group_id,
        ip_address=client_ip(request),
        metadata={"photos_removed": removed},
    )
    return {"success": True, "message": "Comparison group deleted", "photos_removed": removed}
