"""User service - handles user management and credential checks"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import datetime
from fadtrack.models.user import User
from fadtrack.schemas.user import UserCreate, UserUpdate, UserStatus
from fadtrack.core.security import get_password_hash, verify_password, burn_password_check
from fadtrack.core.exceptions import (
    InvalidCredentialsError,
    UserDisabledError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError
)
import logging

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("fadtrack.security")


class UserService:
    """Service for user management"""

    @staticmethod
    def _ensure_unique(
        db: Session,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[str] = None
    ) -> None:
        if username is not None:
            query = db.query(User).filter(User.username == username)
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ResourceAlreadyExistsError(f"Username '{username}'")
        if email:
            query = db.query(User).filter(User.email == email)
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ResourceAlreadyExistsError(f"Email '{email}'")

    @staticmethod
    def create_user(db: Session, user_data: UserCreate) -> User:
        """
        Register a new user

        Args:
            db: Database session
            user_data: User creation data

        Returns:
            Created user
        """
        UserService._ensure_unique(db, user_data.username, user_data.email)

        user = User(
            username=user_data.username,
            email=user_data.email or None,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role.value,
            status=UserStatus.ACTIVE.value,
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Created user: {user.username} (role: {user.role})")
        return user

    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> User:
        """
        Check credentials and account status

        Args:
            db: Database session
            username: Username
            password: Password

        Returns:
            Authenticated user

        Raises:
            InvalidCredentialsError: unknown user or wrong password (not distinguished)
            UserDisabledError: credentials are right but the user is INACTIVE
        """
        user = db.query(User).filter(User.username == username).first()

        if not user:
            burn_password_check(password)
            security_logger.warning("Failed login: unknown username")
            raise InvalidCredentialsError()

        if not verify_password(password, user.password_hash):
            security_logger.warning("Failed login: bad password for user_id=%s", user.id)
            raise InvalidCredentialsError()

        if not user.is_active:
            security_logger.warning("Login refused for disabled user_id=%s", user.id)
            raise UserDisabledError()

        user.last_login = datetime.utcnow()
        db.commit()

        logger.info(f"User authenticated: {username}")
        return user

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        """Get user by username"""
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def get_user(db: Session, user_id: str) -> User:
        user = UserService.get_user_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User")
        return user

    @staticmethod
    def list_users(
        db: Session,
        q: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[User], int]:
        """
        Search users, newest first

        Args:
            db: Database session
            q: Case-insensitive match on username or email
            role: Optional role filter
            status: Optional status filter
            page: 1-based page number
            page_size: Page size

        Returns:
            (users on the page, total matches)
        """
        query = db.query(User)

        if q:
            pattern = f"%{q}%"
            query = query.filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))
        if role:
            query = query.filter(User.role == role)
        if status:
            query = query.filter(User.status == status)

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.username)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return users, total

    @staticmethod
    def update_user(db: Session, user_id: str, data: UserUpdate) -> Tuple[User, List[str]]:
        """
        Apply an admin update

        Returns:
            (updated user, names of the fields that were written)
        """
        user = UserService.get_user(db, user_id)
        fields = data.model_dump(exclude_unset=True)

        UserService._ensure_unique(db, fields.get("username"), fields.get("email"), exclude_id=user.id)

        updated: List[str] = []
        for name in ("username", "email", "role", "status"):
            if name in fields and fields[name] is not None:
                value = fields[name]
                setattr(user, name, value.value if hasattr(value, "value") else value)
                updated.append(name)

        password = fields.get("password")
        if password and password.strip():
            user.password_hash = get_password_hash(password)
            updated.append("password")

        db.commit()
        db.refresh(user)

        logger.info(f"Updated user {user.username}: {', '.join(updated) or 'no changes'}")
        return user, updated

    @staticmethod
    def deactivate_user(db: Session, user_id: str) -> User:
        """
        Soft delete: mark the user INACTIVE and revoke every active refresh session

        Users are never physically removed.
        """
        from fadtrack.services.token_service import token_service

        user = UserService.get_user(db, user_id)
        user.status = UserStatus.INACTIVE.value
        db.commit()

        revoked = token_service.revoke_user_sessions(db, user.id)
        db.refresh(user)

        logger.info(f"Deactivated user {user.username}; revoked {revoked} session(s)")
        return user


# Singleton instance
user_service = UserService()
