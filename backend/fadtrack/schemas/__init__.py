"""Pydantic schemas for API validation"""

from fadtrack.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserSummary,
    UserLogin,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
)
from fadtrack.schemas.area import AreaWrite, AreaResponse
from fadtrack.schemas.photo import (
    PhotoCategory,
    PhotoFileMeta,
    PhotoResponse,
    PhotoUpdate,
    GroupCreate,
    GroupUpdate,
    GroupResponse,
    GroupStatusResponse,
    UploadResponse,
)
from fadtrack.schemas.program_info import ProgramInfoResponse, ProgramInfoUpdate, DisplayOrderUpdate
from fadtrack.schemas.fad import FadWrite, FadResponse, VendorCreate, VendorUpdate, VendorResponse
from fadtrack.schemas.response import APIResponse, ErrorResponse
from fadtrack.schemas.audit import AuditEventResponse

__all__ = [
    "UserCreate", "UserUpdate", "UserResponse", "UserSummary", "UserLogin", "TokenResponse",
    "RefreshTokenRequest", "LogoutRequest",
    "AreaWrite", "AreaResponse",
    "PhotoCategory", "PhotoFileMeta", "PhotoResponse", "PhotoUpdate",
    "GroupCreate", "GroupUpdate", "GroupResponse", "GroupStatusResponse", "UploadResponse",
    "ProgramInfoResponse", "ProgramInfoUpdate", "DisplayOrderUpdate",
    "FadWrite", "FadResponse", "VendorCreate", "VendorUpdate", "VendorResponse",
    "AuditEventResponse",
    "APIResponse", "ErrorResponse",
]
