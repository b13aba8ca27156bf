"""API dependencies - authentication and authorization"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Callable, Iterable, Optional
import logging

from fadtrack.core.database import get_db
from fadtrack.core.security import decode_access_token
from fadtrack.core.exceptions import AuthenticationError, AuthorizationError, UserDisabledError
from fadtrack.core.storage import FileStorage
from fadtrack.models.user import User
from fadtrack.services.user_service import user_service

security_logger = logging.getLogger("fadtrack.security")

# HTTP Bearer token scheme; a missing header is reported by authenticate()
security = HTTPBearer(auto_error=False)


def authenticate(db: Session, token: Optional[str]) -> User:
    """
    Resolve an access token to its user

    Raises:
        AuthenticationError: missing/invalid/expired token or unknown user
        UserDisabledError: the user exists but is INACTIVE
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = user_service.get_user_by_id(db, str(user_id))
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise UserDisabledError()

    return user


def authorize(user: User, roles: Iterable[str]) -> User:
    """
    Check that the user holds one of ``roles``

    Raises:
        AuthorizationError
    """
    allowed = {str(getattr(role, "value", role)) for role in roles}
    if user.role not in allowed:
        security_logger.warning(
            "Role denied: user_id=%s role=%s required=%s", user.id, user.role, sorted(allowed)
        )
        raise AuthorizationError("Insufficient permissions")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Current user
    """
    return authenticate(db, credentials.credentials if credentials else None)


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: the current user, provided their role is listed"""

    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        return authorize(current_user, roles)

    return _checker


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
