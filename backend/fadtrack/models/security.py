"""Refresh session persistence model."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from fadtrack.core.database import Base


class RefreshSession(Base):
    """
    One node of a login's refresh chain.

    A session is ACTIVE until it is rotated (``replaced_by_id`` then
    points at its successor) or logged out. Revocation is permanent.
    """

    __tablename__ = "refresh_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
    replaced_by_id = Column(String(36), ForeignKey("refresh_sessions.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="refresh_sessions")

    __table_args__ = (
        Index("idx_refresh_sessions_user_revoked", "user_id", "revoked"),
    )

    def __repr__(self):
        return f"<RefreshSession(id={self.id}, user_id={self.user_id}, revoked={self.revoked})>"
