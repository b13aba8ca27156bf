"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Invalid username or password (never says which)"""
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid username or password")


class InvalidRefreshTokenError(AuthenticationError):
    """Bad signature, expired, unknown or already revoked refresh session"""
    code = "INVALID_REFRESH_TOKEN"

    def __init__(self):
        super().__init__("Invalid refresh token")


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    code = "FORBIDDEN"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class UserDisabledError(AuthorizationError):
    """User exists but is not active"""
    code = "USER_DISABLED"

    def __init__(self):
        super().__init__("User account is disabled")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    code = "ALREADY_EXISTS"

    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", status_code=409)


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    code = "VALIDATION_FAILED"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class InvalidCategoryError(ValidationError):
    """Per-file category is not one of before/action/after"""
    code = "INVALID_CATEGORY"

    def __init__(self, index: int, value: Any):
        super().__init__(
            f"Invalid category for file {index}: {value}",
            details={"file_index": index, "value": value},
        )


class InvalidTakenAtError(ValidationError):
    """Per-file takenAt does not parse as a date"""
    code = "INVALID_TAKEN_AT"

    def __init__(self, index: int, value: Any):
        super().__init__(
            f"Invalid takenAt for file {index}: {value}",
            details={"file_index": index, "value": value},
        )


# Business Logic Errors
class BusinessLogicError(BaseAPIException):
    """Business logic error"""
    code = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class AreaRequiredError(BusinessLogicError):
    """Neither an area id nor an area name was resolvable"""
    code = "AREA_REQUIRED"

    def __init__(self):
        super().__init__("Area is required (areaId or areaName)")


class UploadRejectedError(BusinessLogicError):
    """Uploaded file failed type/size/count checks or could not be processed"""
    code = "UPLOAD_REJECTED"


class ConflictError(BaseAPIException):
    """State conflict"""
    code = "CONFLICT"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class GroupAlreadyCompleteError(ConflictError):
    """Comparison group already holds before, action and after photos"""
    code = "GROUP_ALREADY_COMPLETE"

    def __init__(self, group_id: int):
        super().__init__(
            "Comparison group already has before, action and after photos. Create a new group.",
            details={"comparison_group_id": group_id},
        )


class CategorySlotTakenError(ConflictError):
    """Category slot in the comparison group is occupied"""
    code = "CATEGORY_SLOT_TAKEN"

    def __init__(self, group_id: int, category: str):
        super().__init__(
            f"Comparison group already has a {category.lower()} photo. Only one photo per category is allowed.",
            details={"comparison_group_id": group_id, "category": category},
        )


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    code = "RATE_LIMITED"

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)
