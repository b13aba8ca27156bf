"""User and authentication schemas"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "ADMIN"
    USER = "USER"
    EXTERNAL = "EXTERNAL"


class UserStatus(str, Enum):
    """User status enumeration"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


def _clean_username(v: str) -> str:
    v = v.strip()
    if not v.replace('_', '').replace('-', '').replace('.', '').isalnum():
        raise ValueError('Username must be alphanumeric (with _ - . allowed)')
    return v


class UserLogin(BaseModel):
    """User login schema"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)


class UserCreate(BaseModel):
    """User registration schema"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    email: Optional[str] = Field(None, max_length=255, pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    role: UserRole = UserRole.USER

    @field_validator('username')
    @classmethod
    def username_alphanumeric(cls, v):
        return _clean_username(v)


class UserUpdate(BaseModel):
    """Admin update; omitted fields stay unchanged, a blank password is ignored"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, max_length=255, pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    password: Optional[str] = None

    @field_validator('username')
    @classmethod
    def username_alphanumeric(cls, v):
        return _clean_username(v) if v is not None else v

    @field_validator('password')
    @classmethod
    def password_length(cls, v):
        if v is not None and v.strip() and len(v) < 6:
            raise ValueError('Password must be at least 6 characters')
        return v


class UserSummary(BaseModel):
    """Minimal user view returned with tokens"""
    id: str
    username: str
    role: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User response schema"""
    id: str
    username: str
    email: Optional[str] = None
    role: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class PageMeta(BaseModel):
    total: int
    page: int
    pageSize: int
    totalPages: int


class UserListResponse(BaseModel):
    data: List[UserResponse]
    meta: PageMeta


class TokenResponse(BaseModel):
    """JWT token response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary


class RefreshTokenRequest(BaseModel):
    """Refresh token in the body; the cookie is used when omitted"""
    refresh_token: Optional[str] = None


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None
