"""Program info image routes"""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from fadtrack.core.database import get_db
from fadtrack.core.storage import FileStorage
from fadtrack.schemas.program_info import DisplayOrderUpdate, ProgramInfoResponse, ProgramInfoUpdate
from fadtrack.services.photo_service import IncomingFile
from fadtrack.services.program_info_service import program_info_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, require_roles, get_storage, client_ip
from fadtrack.models.user import User

router = APIRouter()


@router.get("/", response_model=List[ProgramInfoResponse])
def list_images(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List images in display order"""
    return program_info_service.list_images(db)


@router.post("/", response_model=ProgramInfoResponse, status_code=status.HTTP_201_CREATED)
def upload_image(
    request: Request,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    display_order: Optional[int] = Form(None, alias="displayOrder"),
    current_user: User = Depends(require_roles("ADMIN")),
    storage: FileStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """Upload one image (admin only); it goes last unless a position is given"""
    image = program_info_service.upload_image(
        db,
        storage,
        IncomingFile(filename=file.filename or "", content_type=file.content_type, stream=file.file, size=file.size),
        title=title,
        display_order=display_order,
    )
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="upload_program_info",
        target_type="program_info",
        target_id=image.id,
        ip_address=client_ip(request),
        metadata={"filename": image.filename},
    )
    return image


@router.put("/order", status_code=status.HTTP_200_OK)
def update_display_order(
    data: DisplayOrderUpdate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """Reorder images in one transaction (admin only)"""
    count = program_info_service.update_display_order(db, data.image_orders)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="reorder_program_info",
        target_type="program_info",
        ip_address=client_ip(request),
        metadata={"orders": [item.model_dump() for item in data.image_orders]},
    )
    return {"success": True, "message": "Display order updated", "count": count}


@router.put("/{image_id}", response_model=ProgramInfoResponse)
def update_image(
    image_id: int,
    data: ProgramInfoUpdate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    image = program_info_service.update_image(db, image_id, data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="update_program_info",
        target_type="program_info",
        target_id=image.id,
        ip_address=client_ip(request),
        metadata=data.model_dump(exclude_unset=True),
    )
    return image


@router.delete("/{image_id}", status_code=status.HTTP_200_OK)
def delete_image(
    image_id: int,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    storage: FileStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    image = program_info_service.delete_image(db, storage, image_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="delete_program_info",
        target_type="program_info",
        target_id=image_id,
        ip_address=client_ip(request),
        metadata={"filename": image.filename},
    )
    return {"success": True, "message": "Image deleted"}
