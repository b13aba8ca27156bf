"""Database models"""

from fadtrack.models.user import User
from fadtrack.models.security import RefreshSession
from fadtrack.models.audit import AuditEvent
from fadtrack.models.area import Area
from fadtrack.models.photo import ComparisonGroup, Photo
from fadtrack.models.program_info import ProgramInfoImage
from fadtrack.models.fad import Fad, Vendor

__all__ = [
    "User", "RefreshSession", "AuditEvent", "Area", "ComparisonGroup", "Photo",
    "ProgramInfoImage", "Fad", "Vendor",
]
