"""Photo and comparison group models"""

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, Index, CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from fadtrack.core.database import Base


class ComparisonGroup(Base):
    """Before/action/after set of photos for one area"""

    __tablename__ = "comparison_groups"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(191), nullable=False)
    area_id = Column(Integer, ForeignKey("areas.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=True)
    keterangan = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    area = relationship("Area", back_populates="comparison_groups")
    photos = relationship(
        "Photo", back_populates="comparison_group", order_by="Photo.id", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_comparison_groups_area', 'area_id'),
        Index('idx_comparison_groups_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<ComparisonGroup(id={self.id}, title='{self.title}', area_id={self.area_id})>"


class Photo(Base):
    """Uploaded photo; owns its file and thumbnail in storage"""

    __tablename__ = "photos"

    id = Column(Integer, primary_key=True, index=True)
    area_id = Column(Integer, ForeignKey("areas.id"), nullable=False)
    comparison_group_id = Column(Integer, ForeignKey("comparison_groups.id", ondelete="CASCADE"), nullable=True)
    category = Column(String(10), nullable=True)
    filename = Column(String(255), nullable=False)
    thumb_filename = Column(String(255), nullable=True)
    original_name = Column(String(255), nullable=True)
    url = Column(String(512), nullable=False)
    thumb_url = Column(String(512), nullable=True)
    mime = Column(String(64), nullable=True)
    size = Column(Integer, nullable=True)
    taken_at = Column(DateTime(timezone=True), nullable=True)
    keterangan = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    area = relationship("Area", back_populates="photos")
    comparison_group = relationship("ComparisonGroup", back_populates="photos")

    __table_args__ = (
        # One photo per category per group; NULL group or category never collide.
        UniqueConstraint('comparison_group_id', 'category', name='uq_photo_group_category'),
        Index('idx_photos_area', 'area_id'),
        Index('idx_photos_created_at', 'created_at'),
        CheckConstraint(
            "category IS NULL OR category IN ('BEFORE', 'ACTION', 'AFTER')",
            name='chk_photo_category'
        ),
    )

    def __repr__(self):
        return f"<Photo(id={self.id}, filename='{self.filename}', category={self.category})>"
