"""User management routes"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from fadtrack.core.database import get_db
from fadtrack.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserListResponse,
    PageMeta,
    UserRole,
    UserStatus,
)
from fadtrack.schemas.response import APIResponse
from fadtrack.services.user_service import user_service
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, require_roles, client_ip
from fadtrack.models.user import User

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_my_profile(
    current_user: User = Depends(get_current_user)
):
    """Get current user profile"""
    return UserResponse.model_validate(current_user)


@router.get("/", response_model=UserListResponse)
def list_users(
    q: Optional[str] = None,
    role: Optional[UserRole] = None,
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """
    Search users (admin only)

    Args:
        q: Matches username or email, case-insensitive
        role: Optional role filter
        status_filter: Optional status filter
        page: 1-based page
        page_size: Page size

    Returns:
        Users on the page plus paging metadata
    """
    users, total = user_service.list_users(
        db,
        q=q,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
        page=page,
        page_size=page_size,
    )
    return UserListResponse(
        data=[UserResponse.model_validate(u) for u in users],
        meta=PageMeta(
            total=total,
            page=page,
            pageSize=page_size,
            totalPages=audit_service.total_pages(total, page_size),
        ),
    )


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """Create new user (admin only)"""
    user = user_service.create_user(db, user_data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="create_user",
        target_type="user",
        target_id=user.id,
        ip_address=client_ip(request),
        metadata={"username": user.username, "role": user.role},
    )
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    return user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    data: UserUpdate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """
    Update a user (admin only)

    Omitted fields are left alone and a blank password is ignored.
    """
    user, updated_fields = user_service.update_user(db, user_id, data)
    if updated_fields:
        audit_service.log_event(
            db,
            user_id=current_user.id,
            action="update_user",
            target_type="user",
            target_id=user.id,
            ip_address=client_ip(request),
            metadata={"fields": updated_fields},
        )
    return user


@router.delete("/{user_id}", response_model=APIResponse, status_code=status.HTTP_200_OK)
def deactivate_user(
    user_id: str,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """
    Deactivate a user (admin only)

    Users are never physically removed; their refresh sessions are revoked.
    """
    user = user_service.deactivate_user(db, user_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="deactivate_user",
        target_type="user",
        target_id=user.id,
        ip_address=client_ip(request),
        metadata={"username": user.username},
    )
    return APIResponse(
        message=f"User {user.username} deactivated",
        data=UserResponse.model_validate(user).model_dump(mode="json"),
    )
