"""Refresh session lifecycle: issue, rotate-on-use, revoke."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from fadtrack.config import settings
from fadtrack.core.exceptions import InvalidRefreshTokenError
from fadtrack.core.security import create_access_token, create_refresh_token, decode_refresh_token
from fadtrack.models.security import RefreshSession
from fadtrack.models.user import User
from fadtrack.services.user_service import user_service

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("fadtrack.security")


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class TokenService:
    """
    Manage refresh sessions.

    Every session row is ACTIVE until consumed by exactly one refresh
    (which revokes it and points ``replaced_by_id`` at the successor) or
    revoked by logout. A revoked session presented again is replay and
    fails closed.
    """

    @staticmethod
    def _mint_pair(user: User, session_id: str) -> Tuple[str, str]:
        access_token = create_access_token({"sub": user.id, "role": user.role})
        refresh_token = create_refresh_token(
            {"sub": user.id},
            session_id=session_id,
            expires_delta=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        return access_token, refresh_token

    @staticmethod
    def _new_session(db: Session, user_id: str) -> RefreshSession:
        record = RefreshSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            revoked=False,
            expires_at=datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def issue_token_pair(db: Session, user: User) -> Tuple[str, str]:
        """Open a new ACTIVE session for ``user`` and mint its token pair."""
        record = TokenService._new_session(db, user.id)
        db.commit()
        return TokenService._mint_pair(user, record.id)

    @staticmethod
    def login(db: Session, username: str, password: str) -> LoginResult:
        """
        Authenticate and start a new session lineage.

        Raises:
            InvalidCredentialsError, UserDisabledError
        """
        user = user_service.authenticate_user(db, username, password)
        access_token, refresh_token = TokenService.issue_token_pair(db, user)
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def rotate_refresh_token(db: Session, refresh_token: str) -> Tuple[User, str, str]:
        """
        Consume ``refresh_token`` and return (user, access, refresh) for its successor.

        Bad signature, expiry, unknown session, revoked session and
        inactive owner all raise the same InvalidRefreshTokenError.
        """
        payload = decode_refresh_token(refresh_token)
        if not payload:
            raise InvalidRefreshTokenError()

        session_id = payload.get("jti")
        user_id = payload.get("sub")
        if not session_id or not user_id:
            raise InvalidRefreshTokenError()

        record = db.query(RefreshSession).filter(RefreshSession.id == session_id).first()
        if not record or record.user_id != user_id:
            security_logger.warning("Refresh with unknown session for user_id=%s", user_id)
            raise InvalidRefreshTokenError()

        if record.revoked:
            security_logger.warning(
                "Refresh token replay: session %s already revoked (replaced_by=%s) user_id=%s",
                record.id,
                record.replaced_by_id,
                record.user_id,
            )
            raise InvalidRefreshTokenError()

        user = db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            raise InvalidRefreshTokenError()

        successor = TokenService._new_session(db, user.id)

        # Guarded single-row update: only one concurrent caller can flip revoked.
        result = db.execute(
            update(RefreshSession)
            .where(RefreshSession.id == record.id, RefreshSession.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=datetime.utcnow(), replaced_by_id=successor.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            security_logger.warning("Lost refresh race on session %s user_id=%s", session_id, user_id)
            raise InvalidRefreshTokenError()

        db.commit()
        access_token, new_refresh = TokenService._mint_pair(user, successor.id)
        return user, access_token, new_refresh

    @staticmethod
    def revoke_refresh_token(db: Session, refresh_token: str) -> bool:
        """
        Revoke the session behind ``refresh_token``.

        Idempotent: returns True only if this call changed an ACTIVE
        session to REVOKED; invalid tokens and already revoked sessions
        return False.
        """
        payload = decode_refresh_token(refresh_token)
        if not payload:
            return False
        session_id = payload.get("jti")
        if not session_id:
            return False

        result = db.execute(
            update(RefreshSession)
            .where(RefreshSession.id == session_id, RefreshSession.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        changed = result.rowcount == 1
        if changed:
            logger.info("Refresh session revoked")
        return changed

    @staticmethod
    def revoke_user_sessions(db: Session, user_id: str) -> int:
        """Revoke every ACTIVE session of a user (account deactivation)."""
        result = db.execute(
            update(RefreshSession)
            .where(RefreshSession.user_id == user_id, RefreshSession.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount or 0

    @staticmethod
    def session_chain(db: Session, session_id: str) -> List[RefreshSession]:
        """Follow ``replaced_by_id`` forward from ``session_id``."""
        chain: List[RefreshSession] = []
        seen = set()
        current: Optional[RefreshSession] = db.query(RefreshSession).filter(
            RefreshSession.id == session_id
        ).first()
        while current is not None and current.id not in seen:
            chain.append(current)
            seen.add(current.id)
            if not current.replaced_by_id:
                break
            current = db.query(RefreshSession).filter(RefreshSession.id == current.replaced_by_id).first()
        return chain


token_service = TokenService()
