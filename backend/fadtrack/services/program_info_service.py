"""Program info image service"""

import logging
import re
import secrets
import time
from pathlib import Path
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fadtrack.core.exceptions import ResourceNotFoundError
from fadtrack.core.storage import FileStorage
from fadtrack.models.program_info import ProgramInfoImage
from fadtrack.schemas.program_info import DisplayOrderItem, ProgramInfoUpdate
from fadtrack.services.photo_service import IncomingFile, PhotoService

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


def info_filename(
    original_name: str, timestamp_ms: Optional[int] = None, token: Optional[str] = None
) -> str:
    """``My Chart.PNG`` -> ``info_<ms>_<token>_My_Chart.png``"""
    path = Path(original_name or "image")
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    token = token if token is not None else secrets.token_hex(3)
    base = _UNSAFE_CHARS.sub("_", path.stem) or "image"
    return f"info_{stamp}_{token}_{base}{path.suffix.lower()}"


class ProgramInfoService:
    """Service for ordered program info images"""

    @staticmethod
    def list_images(db: Session) -> List[ProgramInfoImage]:
        return (
            db.query(ProgramInfoImage)
            .order_by(ProgramInfoImage.display_order.asc(), ProgramInfoImage.created_at.asc(), ProgramInfoImage.id.asc())
            .all()
        )

    @staticmethod
    def get_image(db: Session, image_id: int) -> ProgramInfoImage:
        image = db.query(ProgramInfoImage).filter(ProgramInfoImage.id == image_id).first()
        if not image:
            raise ResourceNotFoundError("Program info image")
        return image

    @staticmethod
    def next_display_order(db: Session) -> int:
        current = db.query(func.max(ProgramInfoImage.display_order)).scalar()
        return 0 if current is None else current + 1

    @staticmethod
    def upload_image(
        db: Session,
        storage: FileStorage,
        incoming: IncomingFile,
        title: Optional[str] = None,
        display_order: Optional[int] = None,
    ) -> ProgramInfoImage:
        """
        Store one image (HEIC converted to JPEG) with a thumbnail and insert its row.

        Files written here are removed again if the row cannot be saved.
        """
        PhotoService.check_files([incoming])

        written: List[str] = []
        try:
            name, thumb, mime, size = PhotoService.store_file(
                storage, incoming, written, name=info_filename(incoming.filename)
            )
            image = ProgramInfoImage(
                title=title,
                filename=name,
                thumb_filename=thumb,
                original_name=incoming.filename,
                url=storage.url(name),
                thumb_url=storage.url(thumb) if thumb else None,
                mime=mime,
                size=size,
                display_order=display_order if display_order is not None else ProgramInfoService.next_display_order(db),
            )
            db.add(image)
            db.commit()
        except Exception:
            db.rollback()
            storage.delete_many(written)
            raise

        db.refresh(image)
        logger.info(f"Program info image uploaded: {image.filename}")
        return image

    @staticmethod
    def update_image(db: Session, image_id: int, data: ProgramInfoUpdate) -> ProgramInfoImage:
        image = ProgramInfoService.get_image(db, image_id)
        fields = data.model_dump(exclude_unset=True)
        if "title" in fields:
            image.title = fields["title"]
        if fields.get("display_order") is not None:
            image.display_order = fields["display_order"]
        db.commit()
        db.refresh(image)
        return image

    @staticmethod
    def delete_image(db: Session, storage: FileStorage, image_id: int) -> ProgramInfoImage:
        image = ProgramInfoService.get_image(db, image_id)
        storage.delete_many([image.filename, image.thumb_filename])
        db.delete(image)
        db.commit()
        logger.info(f"Program info image deleted: {image.filename}")
        return image

    @staticmethod
    def update_display_order(db: Session, orders: List[DisplayOrderItem]) -> int:
        """Apply every new position or none of them."""
        ids = {item.id for item in orders}
        images = {
            image.id: image
            for image in db.query(ProgramInfoImage).filter(ProgramInfoImage.id.in_(ids)).all()
        }
        missing = ids - set(images)
        if missing:
            raise ResourceNotFoundError(f"Program info image {sorted(missing)[0]}")

        for item in orders:
            images[item.id].display_order = item.display_order
        db.commit()
        logger.info(f"Program info display order updated for {len(orders)} image(s)")
        return len(orders)


# Singleton instance
program_info_service = ProgramInfoService()
