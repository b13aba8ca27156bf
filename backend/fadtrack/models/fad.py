"""FAD document and vendor models"""

import uuid

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from fadtrack.core.database import Base


class Vendor(Base):
    """Vendor referenced by FAD documents"""

    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(191), unique=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    fads = relationship("Fad", back_populates="vendor_rel")

    def __repr__(self):
        return f"<Vendor(id={self.id}, name='{self.name}', active={self.active})>"


class Fad(Base):
    """Facility/asset document record"""

    __tablename__ = "fads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    no_fad = Column(String(100), nullable=True)
    item = Column(String(255), nullable=True)
    plant = Column(String(100), nullable=True)
    terima_fad = Column(DateTime, nullable=True)
    terima_bbm = Column(DateTime, nullable=True)
    vendor = Column(String(191), nullable=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(100), nullable=True)
    deskripsi = Column(Text, nullable=True)
    keterangan = Column(Text, nullable=True)
    bast = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    vendor_rel = relationship("Vendor", back_populates="fads")

    __table_args__ = (
        Index('idx_fads_no_fad', 'no_fad'),
        Index('idx_fads_terima_fad', 'terima_fad'),
        Index('idx_fads_status', 'status'),
    )

    def __repr__(self):
        return f"<Fad(id={self.id}, no_fad='{self.no_fad}')>"
