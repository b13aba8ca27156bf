"""Area service - site areas that photos and groups hang off"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fadtrack.core.exceptions import (
    AreaRequiredError,
    BusinessLogicError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from fadtrack.models.area import Area
from fadtrack.models.photo import Photo
import logging

logger = logging.getLogger(__name__)


class AreaService:
    """Service for area management"""

    @staticmethod
    def list_areas(db: Session) -> List[Area]:
        return db.query(Area).order_by(Area.name).all()

    @staticmethod
    def get_area(db: Session, area_id: int) -> Area:
        area = db.query(Area).filter(Area.id == area_id).first()
        if not area:
            raise ResourceNotFoundError("Area")
        return area

    @staticmethod
    def upsert_by_name(db: Session, name: str) -> Area:
        """
        Return the area called ``name``, creating and committing it if needed.

        Repeated calls with the same name always return the same row.
        """
        name = name.strip()
        area = db.query(Area).filter(Area.name == name).first()
        if area:
            return area

        area = Area(name=name)
        db.add(area)
        try:
            db.commit()
            db.refresh(area)
        except IntegrityError:
            # Lost a concurrent insert of the same name.
            db.rollback()
            area = db.query(Area).filter(Area.name == name).first()
            if area is None:
                raise
            return area

        logger.info(f"Created area: {area.name}")
        return area

    @staticmethod
    def create_area(db: Session, name: str) -> Area:
        return AreaService.upsert_by_name(db, name)

    @staticmethod
    def resolve_area(db: Session, area_id: Optional[int] = None, area_name: Optional[str] = None) -> Area:
        """
        Pick the area for an upload or a new group.

        An explicit id wins; otherwise the name is upserted.

        Raises:
            ResourceNotFoundError: id given but unknown
            AreaRequiredError: neither id nor non-blank name
        """
        if area_id:
            return AreaService.get_area(db, area_id)
        if area_name and area_name.strip():
            return AreaService.upsert_by_name(db, area_name)
        raise AreaRequiredError()

    @staticmethod
    def update_area(db: Session, area_id: int, name: str) -> Area:
        area = AreaService.get_area(db, area_id)
        name = name.strip()
        clash = db.query(Area).filter(Area.name == name, Area.id != area_id).first()
        if clash:
            raise ResourceAlreadyExistsError(f"Area '{name}'")

        area.name = name
        db.commit()
        db.refresh(area)
        return area

    @staticmethod
    def has_photos(db: Session, area_id: int) -> bool:
        return db.query(Photo.id).filter(Photo.area_id == area_id).first() is not None

    @staticmethod
    def delete_area(db: Session, area_id: int) -> Area:
        """Delete an area; refused while any photo still references it."""
        area = AreaService.get_area(db, area_id)
        if AreaService.has_photos(db, area_id):
            raise BusinessLogicError(
                "Area still has photos; delete them first",
                details={"area_id": area_id},
            )
        db.delete(area)
        db.commit()
        logger.info(f"Deleted area: {area.name}")
        return area


# Singleton instance
area_service = AreaService()
