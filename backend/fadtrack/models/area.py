"""Area model"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from fadtrack.core.database import Base


class Area(Base):
    """Named site area that photos and comparison groups belong to"""

    __tablename__ = "areas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(191), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    photos = relationship("Photo", back_populates="area")
    comparison_groups = relationship("ComparisonGroup", back_populates="area")

    def __repr__(self):
        return f"<Area(id={self.id}, name='{self.name}')>"
