"""Photo service - uploads, comparison groups and their completion state"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from fadtrack.config import settings
from fadtrack.core import imaging
from fadtrack.core.dates import get_range, parse_datetime
from fadtrack.core.exceptions import (
    CategorySlotTakenError,
    GroupAlreadyCompleteError,
    InvalidCategoryError,
    InvalidTakenAtError,
    ResourceNotFoundError,
    UploadRejectedError,
)
from fadtrack.core.storage import FileStorage
from fadtrack.models.area import Area
from fadtrack.models.photo import ComparisonGroup, Photo
from fadtrack.schemas.photo import GroupCreate, GroupUpdate, PhotoCategory, PhotoFileMeta
from fadtrack.services.area_service import area_service

logger = logging.getLogger(__name__)

CATEGORIES = [c.value for c in PhotoCategory]


@dataclass
class IncomingFile:
    """One uploaded file as handed over by the HTTP layer"""
    filename: str
    content_type: Optional[str]
    stream: BinaryIO
    size: Optional[int] = None


@dataclass
class FileMetadata:
    """Normalized per-file metadata"""
    category: Optional[str] = None
    taken_at: Optional[datetime] = None
    keterangan: Optional[str] = None


@dataclass
class UploadResult:
    area: Area
    group: Optional[ComparisonGroup]
    photos: List[Photo] = field(default_factory=list)


def count_by_category(photos: Iterable[Photo]) -> Dict[str, int]:
    counts = {category: 0 for category in CATEGORIES}
    for photo in photos:
        if photo.category in counts:
            counts[photo.category] += 1
    return counts


def is_complete(photos: Iterable[Photo]) -> bool:
    """A group is complete once every category holds at least one photo."""
    counts = count_by_category(photos)
    return all(counts[category] > 0 for category in CATEGORIES)


def normalize_category(index: int, value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    category = str(value).strip().upper()
    if category not in CATEGORIES:
        raise InvalidCategoryError(index, value)
    return category


def normalize_taken_at(index: int, value: Optional[str]) -> Optional[datetime]:
    if value is None or not str(value).strip():
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise InvalidTakenAtError(index, value)
    return parsed


def normalize_metadata(metas: List[PhotoFileMeta]) -> List[FileMetadata]:
    """Validate every entry before anything is written."""
    return [
        FileMetadata(
            category=normalize_category(index, meta.category),
            taken_at=normalize_taken_at(index, meta.taken_at),
            keterangan=meta.keterangan,
        )
        for index, meta in enumerate(metas)
    ]


class PhotoService:
    """Service for photos and comparison groups"""

    # ---- upload pipeline -------------------------------------------------

    @staticmethod
    def check_files(files: List[IncomingFile]) -> None:
        """
        Reject the batch on count, type or declared size.

        Raises:
            UploadRejectedError
        """
        if not files:
            raise UploadRejectedError("No files uploaded")
        if len(files) > settings.MAX_UPLOAD_FILES:
            raise UploadRejectedError(
                f"Too many files (max {settings.MAX_UPLOAD_FILES})",
                details={"file_count": len(files)},
            )

        allowed_mimes = {m.lower() for m in settings.ALLOWED_UPLOAD_MIME_TYPES}
        allowed_exts = {e.lower() for e in settings.ALLOWED_UPLOAD_EXTENSIONS}
        max_bytes = settings.get_max_upload_bytes()

        for index, incoming in enumerate(files):
            ext = Path(incoming.filename or "").suffix.lower()
            mime = (incoming.content_type or "").lower()
            # Browsers often send HEIC as application/octet-stream.
            heic_by_ext = ext in imaging.HEIC_EXTENSIONS and mime in ("", "application/octet-stream")
            if ext not in allowed_exts or (mime not in allowed_mimes and not heic_by_ext):
                raise UploadRejectedError(
                    "Only JPG, PNG and HEIC images are allowed",
                    details={"file_index": index, "filename": incoming.filename},
                )
            if incoming.size is not None and incoming.size > max_bytes:
                raise UploadRejectedError(
                    f"File too large (max {settings.MAX_UPLOAD_SIZE_MB} MB)",
                    details={"file_index": index, "filename": incoming.filename},
                )

    @staticmethod
    def resolve_group(
        db: Session,
        area: Area,
        group_id: Optional[int] = None,
        group_title: Optional[str] = None,
    ) -> Optional[ComparisonGroup]:
        """
        Pick the comparison group for an upload.

        An existing group is locked for the rest of the transaction so
        validation and insert see the same slots. A new title creates
        a group (flushed, not committed). No id and no title means the
        photos stand alone.
        """
        if group_id:
            group = (
                db.query(ComparisonGroup)
                .filter(ComparisonGroup.id == group_id)
                .with_for_update()
                .first()
            )
            if not group:
                raise ResourceNotFoundError("Comparison group")
            return group

        if group_title and group_title.strip():
            group = ComparisonGroup(title=group_title.strip(), area_id=area.id)
            db.add(group)
            db.flush()
            logger.info(f"Created comparison group '{group.title}' for area {area.id}")
            return group

        return None

    @staticmethod
    def validate_upload_against_group(
        db: Session, group: ComparisonGroup, categories: List[Optional[str]]
    ) -> None:
        """
        Refuse an upload into a complete group or into occupied slots.

        Raises:
            GroupAlreadyCompleteError, CategorySlotTakenError
        """
        existing = db.query(Photo).filter(Photo.comparison_group_id == group.id).all()
        counts = count_by_category(existing)
        if all(counts[c] > 0 for c in CATEGORIES):
            raise GroupAlreadyCompleteError(group.id)

        requested = set()
        for category in categories:
            if category is None:
                continue
            if counts[category] > 0 or category in requested:
                raise CategorySlotTakenError(group.id, category)
            requested.add(category)

    @staticmethod
    def is_slot_conflict(exc: IntegrityError) -> bool:
        """True when ``exc`` comes from the one-photo-per-slot unique constraint."""
        text = str(exc.orig)
        # PostgreSQL names the constraint; SQLite lists its columns.
        return "uq_photo_group_category" in text or (
            "UNIQUE" in text and "photos.comparison_group_id" in text and "photos.category" in text
        )

    @staticmethod
    def store_file(
        storage: FileStorage, incoming: IncomingFile, written: List[str], name: Optional[str] = None
    ) -> Tuple[str, Optional[str], str, int]:
        """
        Write one file, convert HEIC to JPEG and make its thumbnail.

        Every file left on disk is appended to ``written``. Returns
        (filename, thumb filename or None, mime, size).
        """
        name = name or storage.random_name(incoming.filename)
        try:
            stored = storage.save(incoming.stream, name, max_bytes=settings.get_max_upload_bytes())
        except OverflowError:
            raise UploadRejectedError(
                f"File too large (max {settings.MAX_UPLOAD_SIZE_MB} MB)",
                details={"filename": incoming.filename},
            )
        written.append(name)
        mime = incoming.content_type or "application/octet-stream"
        size = stored.size

        if imaging.is_heic(incoming.filename, incoming.content_type):
            jpg = imaging.jpeg_name(name)
            try:
                imaging.convert_to_jpeg(storage.path(name), storage.path(jpg))
            except (OSError, ValueError) as exc:
                storage.delete(jpg)
                logger.error(f"HEIC conversion failed for {incoming.filename}: {exc}")
                raise UploadRejectedError(
                    "Could not convert HEIC image",
                    details={"filename": incoming.filename},
                )
            written.append(jpg)
            storage.delete(name)
            written.remove(name)
            name = jpg
            mime = "image/jpeg"
            size = storage.path(jpg).stat().st_size

        thumb = imaging.thumb_name(name)
        try:
            imaging.make_thumbnail(storage.path(name), storage.path(thumb), width=settings.THUMBNAIL_WIDTH)
            written.append(thumb)
        except (OSError, ValueError) as exc:
            storage.delete(thumb)
            logger.warning(f"Thumbnail generation failed for {name}: {exc}")
            thumb = None

        return name, thumb, mime, size

    @staticmethod
    def ingest(
        db: Session,
        storage: FileStorage,
        files: List[IncomingFile],
        metadata: List[FileMetadata],
        area: Area,
        group: Optional[ComparisonGroup] = None,
    ) -> List[Photo]:
        """
        Write files and insert one Photo row per file in a single commit.

        On any failure every file written by this call is deleted, the
        transaction is rolled back and the error propagates.
        """
        written: List[str] = []
        photos: List[Photo] = []
        now = datetime.utcnow()
        try:
            for incoming, meta in zip(files, metadata):
                filename, thumb, mime, size = PhotoService.store_file(storage, incoming, written)
                photo = Photo(
                    area_id=area.id,
                    comparison_group_id=group.id if group else None,
                    category=meta.category,
                    filename=filename,
                    thumb_filename=thumb,
                    original_name=incoming.filename,
                    url=storage.url(filename),
                    thumb_url=storage.url(thumb) if thumb else None,
                    mime=mime,
                    size=size,
                    taken_at=meta.taken_at or now,
                    keterangan=meta.keterangan,
                )
                db.add(photo)
                photos.append(photo)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            removed = storage.delete_many(written)
            logger.warning(f"Upload rejected by store constraints; removed {removed} file(s)")
            if group is not None and PhotoService.is_slot_conflict(exc):
                taken = ",".join(m.category for m in metadata if m.category) or "UNKNOWN"
                raise CategorySlotTakenError(group.id, taken)
            raise
        except Exception:
            db.rollback()
            removed = storage.delete_many(written)
            logger.error(f"Upload failed; removed {removed} file(s)")
            raise

        for photo in photos:
            db.refresh(photo)
        return photos

    @staticmethod
    def upload(
        db: Session,
        storage: FileStorage,
        files: List[IncomingFile],
        metas: List[PhotoFileMeta],
        area_id: Optional[int] = None,
        area_name: Optional[str] = None,
        group_id: Optional[int] = None,
        group_title: Optional[str] = None,
    ) -> UploadResult:
        """
        Full upload: validate, resolve area and group, check slots, ingest.

        Everything is validated before the first byte is written.
        """
        PhotoService.check_files(files)
        metadata = normalize_metadata(metas)

        if not area_id and not (area_name and area_name.strip()) and group_id:
            existing = db.query(ComparisonGroup).filter(ComparisonGroup.id == group_id).first()
            if existing and existing.area_id:
                area_id = existing.area_id
        area = area_service.resolve_area(db, area_id, area_name)

        try:
            group = PhotoService.resolve_group(db, area, group_id, group_title)
            if group is not None:
                PhotoService.validate_upload_against_group(db, group, [m.category for m in metadata])
        except Exception:
            db.rollback()
            raise

        photos = PhotoService.ingest(db, storage, files, metadata, area, group)
        logger.info(
            f"Uploaded {len(photos)} photo(s) to area {area.id}"
            + (f", group {group.id}" if group else "")
        )
        return UploadResult(area=area, group=group, photos=photos)

    # ---- photos ----------------------------------------------------------

    @staticmethod
    def get_photo(db: Session, photo_id: int) -> Photo:
        photo = db.query(Photo).filter(Photo.id == photo_id).first()
        if not photo:
            raise ResourceNotFoundError("Photo")
        return photo

    @staticmethod
    def list_photos(
        db: Session,
        area_id: Optional[int] = None,
        category: Optional[str] = None,
        comparison_group_id: Optional[int] = None,
        period: Optional[str] = None,
        date: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[Photo], int]:
        """
        Filtered photo listing, newest ``taken_at`` first.

        The day/week/month window around ``date`` only applies when no
        comparison group is requested.
        """
        query = db.query(Photo).options(joinedload(Photo.area))
        if area_id:
            query = query.filter(Photo.area_id == area_id)
        if category:
            query = query.filter(Photo.category == category.strip().upper())
        if comparison_group_id:
            query = query.filter(Photo.comparison_group_id == comparison_group_id)
        else:
            start, end = get_range(date, period)
            query = query.filter(Photo.taken_at >= start, Photo.taken_at <= end)

        total = query.count()
        photos = (
            query.order_by(Photo.taken_at.desc(), Photo.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return photos, total

    @staticmethod
    def update_photo(db: Session, photo_id: int, keterangan: Optional[str]) -> Photo:
        photo = PhotoService.get_photo(db, photo_id)
        photo.keterangan = keterangan
        db.commit()
        db.refresh(photo)
        return photo

    @staticmethod
    def remove_photo(db: Session, storage: FileStorage, photo_id: int) -> Photo:
        """Delete the photo's file and thumbnail (best effort), then its row."""
        photo = PhotoService.get_photo(db, photo_id)
        storage.delete_many([photo.filename, photo.thumb_filename])
        db.delete(photo)
        db.commit()
        logger.info(f"Deleted photo {photo_id}")
        return photo

    # ---- comparison groups ----------------------------------------------

    @staticmethod
    def create_group(db: Session, data: GroupCreate) -> ComparisonGroup:
        area = area_service.resolve_area(db, data.area_id, data.area_name)
        group = ComparisonGroup(title=data.title.strip(), area_id=area.id, description=data.description)
        db.add(group)
        db.commit()
        db.refresh(group)
        logger.info(f"Created comparison group {group.id} '{group.title}'")
        return group

    @staticmethod
    def get_group(db: Session, group_id: int) -> ComparisonGroup:
        group = (
            db.query(ComparisonGroup)
            .options(selectinload(ComparisonGroup.photos))
            .filter(ComparisonGroup.id == group_id)
            .first()
        )
        if not group:
            raise ResourceNotFoundError("Comparison group")
        return group

    @staticmethod
    def group_status(group: ComparisonGroup) -> Tuple[Dict[str, int], bool]:
        counts = count_by_category(group.photos)
        return counts, is_complete(group.photos)

    @staticmethod
    def list_groups(
        db: Session, area_id: Optional[int] = None, page: int = 1, page_size: int = 20
    ) -> Tuple[List[ComparisonGroup], int]:
        query = db.query(ComparisonGroup)
        if area_id:
            query = query.filter(ComparisonGroup.area_id == area_id)
        total = query.count()
        groups = (
            query.options(selectinload(ComparisonGroup.photos))
            .order_by(ComparisonGroup.created_at.desc(), ComparisonGroup.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return groups, total

    @staticmethod
    def update_group(db: Session, group_id: int, data: GroupUpdate) -> ComparisonGroup:
        group = PhotoService.get_group(db, group_id)
        for name, value in data.model_dump(exclude_unset=True).items():
            if name == "title" and value is None:
                continue
            setattr(group, name, value.strip() if name == "title" else value)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def delete_group(db: Session, storage: FileStorage, group_id: int) -> int:
        """
        Delete a group and all its photos.

        Files go first (best effort), then the rows in one commit.
        Returns the number of photos removed.
        """
        group = PhotoService.get_group(db, group_id)
        photos = list(group.photos)
        for photo in photos:
            storage.delete_many([photo.filename, photo.thumb_filename])
        db.delete(group)
        db.commit()
        logger.info(f"Deleted comparison group {group_id} with {len(photos)} photo(s)")
        return len(photos)


# Singleton instance
photo_service = PhotoService()
