"""Photo routes - multipart upload, listing and removal"""

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from fadtrack.core.database import get_db
from fadtrack.core.storage import FileStorage
from fadtrack.schemas.photo import (
    GroupPage,
    PhotoPage,
    PhotoResponse,
    PhotoUpdate,
    UploadResponse,
    group_status_payload,
    parse_file_meta,
)
from fadtrack.services.photo_service import IncomingFile, photo_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, get_storage, client_ip
from fadtrack.models.user import User

router = APIRouter()


def _photo_payload(photo) -> PhotoResponse:
    payload = PhotoResponse.model_validate(photo)
    if photo.area is not None:
        payload.area_name = photo.area.name
    return payload


@router.post("/", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_photos(
    request: Request,
    files: List[UploadFile] = File(...),
    area_id: Optional[int] = Form(None, alias="areaId"),
    area_name: Optional[str] = Form(None, alias="areaName"),
    comparison_group_id: Optional[int] = Form(None, alias="comparisonGroupId"),
    comparison_group_title: Optional[str] = Form(None, alias="comparisonGroupTitle"),
    file_meta: Optional[str] = Form(None, alias="fileMeta"),
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """
    Upload 1..N photos into an area and, optionally, a comparison group

    ``fileMeta`` is a JSON array of ``{category?, takenAt?, keterangan?}``
    objects aligned with ``files``. A group accepts one photo per
    category and no uploads once complete.
    """
    metas = parse_file_meta(file_meta, len(files))
    incoming = [
        IncomingFile(filename=f.filename or "", content_type=f.content_type, stream=f.file, size=f.size)
        for f in files
    ]

    result = photo_service.upload(
        db,
        storage,
        incoming,
        metas,
        area_id=area_id,
        area_name=area_name,
        group_id=comparison_group_id,
        group_title=comparison_group_title,
    )

    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="upload_photos",
        target_type="photo",
        target_id=result.group.id if result.group else None,
        ip_address=client_ip(request),
        metadata={
            "area_id": result.area.id,
            "comparison_group_id": result.group.id if result.group else None,
            "photo_ids": [p.id for p in result.photos],
            "categories": [p.category for p in result.photos],
        },
    )

    return UploadResponse(
        count=len(result.photos),
        area_id=result.area.id,
        comparison_group_id=result.group.id if result.group else None,
        photos=[_photo_payload(p) for p in result.photos],
    )


@router.get("/")
def list_photos(
    area_id: Optional[int] = Query(None, alias="areaId"),
    category: Optional[str] = None,
    comparison_group_id: Optional[int] = Query(None, alias="comparisonGroupId"),
    period: Optional[str] = Query(None, pattern="^(day|week|month)$"),
    date: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
    group_by_comparison: bool = Query(False, alias="groupByComparison"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List photos

    ``period`` (day, week or month around ``date``) applies when no
    comparison group is requested. With ``groupByComparison`` the
    response lists groups with their photos and completion status.
    """
    if group_by_comparison:
        groups, total = photo_service.list_groups(db, area_id=area_id, page=page, page_size=page_size)
        items = []
        for group in groups:
            counts, complete = photo_service.group_status(group)
            items.append(group_status_payload(group, counts, complete))
        return GroupPage(total=total, items=items, page=page, pageSize=page_size)

    photos, total = photo_service.list_photos(
        db,
        area_id=area_id,
        category=category,
        comparison_group_id=comparison_group_id,
        period=period,
        date=date,
        page=page,
        page_size=page_size,
    )
    return PhotoPage(total=total, items=[_photo_payload(p) for p in photos], page=page, pageSize=page_size)


@router.put("/{photo_id}", response_model=PhotoResponse)
def update_photo(
    photo_id: int,
    data: PhotoUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a photo's annotation"""
    photo = photo_service.update_photo(db, photo_id, data.keterangan)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="update_photo",
        target_type="photo",
        target_id=photo.id,
        ip_address=client_ip(request),
    )
    return _photo_payload(photo)


@router.delete("/{photo_id}", status_code=status.HTTP_200_OK)
def delete_photo(
    photo_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """Delete a photo together with its file and thumbnail"""
    photo = photo_service.remove_photo(db, storage, photo_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_photo",
        target_type="photo",
        target_id=photo_id,
        ip_address=client_ip(request),
        metadata={"filename": photo.filename, "comparison_group_id": photo.comparison_group_id},
    )
    return {"success": True, "message": "Photo deleted"}
