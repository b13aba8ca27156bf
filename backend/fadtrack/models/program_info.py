"""Program info image model"""

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func

from fadtrack.core.database import Base


class ProgramInfoImage(Base):
    """Ordered informational image shown to every signed-in user"""

    __tablename__ = "program_info_images"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(191), nullable=True)
    filename = Column(String(255), nullable=False)
    thumb_filename = Column(String(255), nullable=True)
    original_name = Column(String(255), nullable=True)
    url = Column(String(512), nullable=False)
    thumb_url = Column(String(512), nullable=True)
    mime = Column(String(64), nullable=True)
    size = Column(Integer, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_program_info_display_order', 'display_order'),
    )
