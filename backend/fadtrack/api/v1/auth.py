"""Authentication routes"""

from fastapi import APIRouter, Depends, status, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
from urllib.parse import urlsplit

from fadtrack.core.database import get_db
from fadtrack.config import settings
from fadtrack.schemas.user import (
    UserLogin,
    UserCreate,
    TokenResponse,
    UserResponse,
    UserSummary,
    RefreshTokenRequest,
    LogoutRequest,
)
from fadtrack.services.user_service import user_service
from fadtrack.services.token_service import token_service
from fadtrack.services.rate_limiter import rate_limiter
from fadtrack.services.audit_service import audit_service
from fadtrack.api.deps import get_current_user, require_roles, client_ip
from fadtrack.models.user import User
from fadtrack.core.exceptions import AuthorizationError, InvalidRefreshTokenError, RateLimitExceededError

router = APIRouter()


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        path=settings.REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production(),
        samesite="strict" if settings.is_production() else "lax",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path=settings.REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production(),
        samesite="strict" if settings.is_production() else "lax",
    )


def _request_origin(request: Request) -> Optional[str]:
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/")
    referer = request.headers.get("referer")
    if referer:
        parts = urlsplit(referer)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
    return None


def _token_response(user: User, access_token: str, refresh_token: str) -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSummary.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - authenticate user and start a refresh session

    Args:
        credentials: Username and password
        db: Database session

    Returns:
        Access token, refresh token and user summary. The refresh token
        is also set as an HTTP-only cookie.
    """
    ip = client_ip(request)
    user_key = credentials.username.strip().lower()
    rules = [
        (f"login:{ip}", settings.LOGIN_IP_RATE_LIMIT_PER_MINUTE, 60),
        (f"login:{ip}", settings.LOGIN_IP_RATE_LIMIT_PER_HOUR, 3600),
        (f"login:{ip}:{user_key}", settings.LOGIN_RATE_LIMIT_PER_MINUTE, 60),
        (f"login:{ip}:{user_key}", settings.LOGIN_RATE_LIMIT_PER_HOUR, 3600),
    ]
    if not rate_limiter.allow_all(rules):
        raise RateLimitExceededError("Too many login attempts. Please try again later.")

    result = token_service.login(db, credentials.username, credentials.password)
    audit_service.log_event(
        db,
        user_id=result.user.id,
        action="login",
        target_type="user",
        target_id=result.user.id,
        ip_address=ip,
    )

    _set_refresh_cookie(response, result.refresh_token)
    return _token_response(result.user, result.access_token, result.refresh_token)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: Request,
    response: Response,
    req: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Rotate the refresh session and return a new token pair

    The token is read from the JSON body or, when absent, from the
    refresh cookie. Cookie-based calls must come from an allowed origin.
    """
    ip = client_ip(request)
    rules = [
        (f"refresh:{ip}", settings.REFRESH_RATE_LIMIT_PER_MINUTE, 60),
        (f"refresh:{ip}", settings.REFRESH_RATE_LIMIT_PER_HOUR, 3600),
    ]
    if not rate_limiter.allow_all(rules):
        raise RateLimitExceededError("Too many refresh attempts. Slow down.")

    token = req.refresh_token if req and req.refresh_token else None
    if not token:
        token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
        origin = _request_origin(request)
        if token and origin and origin not in settings.CORS_ORIGINS:
            raise AuthorizationError("Origin not allowed")
    if not token:
        raise InvalidRefreshTokenError()

    user, access_token, new_refresh = token_service.rotate_refresh_token(db, token)

    _set_refresh_cookie(response, new_refresh)
    return _token_response(user, access_token, new_refresh)


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(
    request: Request,
    response: Response,
    body: Optional[LogoutRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Logout endpoint - revoke the refresh session and clear the cookie

    Always answers 200; ``refresh_token_revoked`` tells whether a live
    session was actually revoked.
    """
    token = body.refresh_token if body and body.refresh_token else request.cookies.get(settings.REFRESH_COOKIE_NAME)
    revoked = token_service.revoke_refresh_token(db, token) if token else False

    _clear_refresh_cookie(response)
    return {
        "success": True,
        "message": "Logged out successfully",
        "refresh_token_revoked": revoked
    }


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information"""
    return UserResponse.model_validate(current_user)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    request: Request,
    current_user: User = Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db)
):
    """Register a new user (admin only)"""
    user = user_service.create_user(db, user_data)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="register_user",
        target_type="user",
        target_id=user.id,
        ip_address=client_ip(request),
        metadata={"username": user.username, "role": user.role},
    )
    return UserResponse.model_validate(user)
