import io

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import jpeg_bytes, png_bytes
from fadtrack.core.exceptions import (
    AreaRequiredError,
    CategorySlotTakenError,
    GroupAlreadyCompleteError,
    InvalidCategoryError,
    InvalidTakenAtError,
    UploadRejectedError,
)
from fadtrack.models.photo import ComparisonGroup, Photo
from fadtrack.schemas.photo import GroupCreate, GroupUpdate, PhotoFileMeta
from fadtrack.services.area_service import area_service
from fadtrack.services.photo_service import FileMetadata, IncomingFile, PhotoService, photo_service


def _jpeg(name="photo.jpg"):
    return IncomingFile(filename=name, content_type="image/jpeg", stream=io.BytesIO(jpeg_bytes()))


def _meta(category=None, taken_at=None, keterangan=None):
    return PhotoFileMeta(category=category, taken_at=taken_at, keterangan=keterangan)


def _upload(db, storage, categories, **kwargs):
    files = [_jpeg(f"{c or 'free'}.jpg") for c in categories]
    return photo_service.upload(db, storage, files, [_meta(c) for c in categories], **kwargs)


def test_upload_stores_files_thumbnails_and_rows(db, storage):
    result = photo_service.upload(
        db,
        storage,
        [_jpeg("Site 1.JPG")],
        [_meta(None, "2024-03-05T10:00:00Z", "north wall")],
        area_name="Gudang A",
    )

    assert result.group is None
    photo = result.photos[0]
    assert photo.area_id == result.area.id
    assert photo.filename.endswith(".jpg")
    assert photo.thumb_filename == photo.filename.replace(".jpg", "_thumb.jpg")
    assert photo.url == f"/uploads/TPS/{photo.filename}"
    assert photo.keterangan == "north wall"
    assert photo.taken_at.day == 5
    assert sorted(storage.list_files()) == sorted([photo.filename, photo.thumb_filename])


def test_taken_at_defaults_to_upload_time(db, storage):
    result = _upload(db, storage, [None], area_name="Gudang A")
    assert result.photos[0].taken_at is not None


def test_group_completes_after_before_action_after(db, storage):
    first = _upload(db, storage, ["before"], area_name="Gudang A", group_title="Pintu depan")
    group_id = first.group.id

    _upload(db, storage, ["ACTION", "AFTER"], group_id=group_id)

    group = photo_service.get_group(db, group_id)
    counts, complete = photo_service.group_status(group)
    assert counts == {"BEFORE": 1, "ACTION": 1, "AFTER": 1}
    assert complete is True

    files_before = storage.list_files()
    with pytest.raises(GroupAlreadyCompleteError):
        _upload(db, storage, [None], group_id=group_id)
    assert storage.list_files() == files_before


def test_occupied_slot_is_rejected_before_writing(db, storage):
    first = _upload(db, storage, ["BEFORE"], area_name="Gudang A", group_title="Pintu depan")
    files_before = storage.list_files()

    with pytest.raises(CategorySlotTakenError) as exc:
        _upload(db, storage, ["BEFORE"], group_id=first.group.id)

    assert exc.value.details["category"] == "BEFORE"
    assert storage.list_files() == files_before
    assert db.query(Photo).count() == 1


def test_duplicate_category_within_one_batch_is_rejected(db, storage):
    with pytest.raises(CategorySlotTakenError):
        _upload(db, storage, ["AFTER", "AFTER"], area_name="Gudang A", group_title="Atap")

    assert storage.list_files() == []
    assert db.query(Photo).count() == 0
    assert db.query(ComparisonGroup).count() == 0


def test_group_area_is_used_when_upload_names_no_area(db, storage):
    first = _upload(db, storage, ["BEFORE"], area_name="Gudang A", group_title="Pintu depan")

    second = _upload(db, storage, ["AFTER"], group_id=first.group.id)

    assert second.area.id == first.area.id


def test_upload_without_area_is_rejected(db, storage):
    with pytest.raises(AreaRequiredError):
        _upload(db, storage, [None])
    assert storage.list_files() == []


def test_invalid_metadata_is_rejected_before_writing(db, storage):
    with pytest.raises(InvalidCategoryError):
        photo_service.upload(db, storage, [_jpeg()], [_meta("DURING")], area_name="Gudang A")
    with pytest.raises(InvalidTakenAtError):
        photo_service.upload(db, storage, [_jpeg()], [_meta(None, "yesterday")], area_name="Gudang A")
    assert storage.list_files() == []


def test_file_type_and_count_are_checked(db, storage):
    pdf = IncomingFile(filename="doc.pdf", content_type="application/pdf", stream=io.BytesIO(b"%PDF"))
    with pytest.raises(UploadRejectedError):
        photo_service.upload(db, storage, [pdf], [_meta()], area_name="Gudang A")
    with pytest.raises(UploadRejectedError):
        photo_service.upload(db, storage, [], [], area_name="Gudang A")


def test_store_failure_leaves_no_files(db, storage, monkeypatch):
    area = area_service.create_area(db, "Gudang A")

    def failing_commit():
        raise RuntimeError("disk full")

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(RuntimeError):
        photo_service.upload(db, storage, [_jpeg(), _jpeg()], [_meta(), _meta()], area_id=area.id)
    monkeypatch.undo()

    assert storage.list_files() == []
    assert db.query(Photo).count() == 0


def test_unreadable_image_is_kept_without_thumbnail(db, storage):
    broken = IncomingFile(filename="broken.jpg", content_type="image/jpeg", stream=io.BytesIO(b"not an image"))

    result = photo_service.upload(db, storage, [broken], [_meta()], area_name="Gudang A")

    assert result.photos[0].thumb_filename is None
    assert result.photos[0].thumb_url is None
    assert storage.list_files() == [result.photos[0].filename]


def test_failed_heic_conversion_rejects_upload(db, storage):
    heic = IncomingFile(filename="IMG_0001.HEIC", content_type="application/octet-stream", stream=io.BytesIO(b"junk"))

    with pytest.raises(UploadRejectedError):
        photo_service.upload(db, storage, [heic], [_meta()], area_name="Gudang A")
    assert storage.list_files() == []


def test_png_thumbnail_keeps_png(db, storage):
    png = IncomingFile(filename="plan.png", content_type="image/png", stream=io.BytesIO(png_bytes()))

    photo = photo_service.upload(db, storage, [png], [_meta()], area_name="Gudang A").photos[0]

    assert photo.thumb_filename.endswith("_thumb.png")
    assert photo.mime == "image/png"


def test_remove_photo_deletes_files_and_frees_slot(db, storage):
    first = _upload(db, storage, ["BEFORE"], area_name="Gudang A", group_title="Pintu depan")
    photo = first.photos[0]

    photo_service.remove_photo(db, storage, photo.id)

    assert storage.list_files() == []
    assert db.query(Photo).count() == 0
    _upload(db, storage, ["BEFORE"], group_id=first.group.id)


def test_delete_group_removes_photos_and_files(db, storage):
    first = _upload(db, storage, ["BEFORE", "ACTION"], area_name="Gudang A", group_title="Pintu depan")
    other = _upload(db, storage, [None], area_name="Gudang A")

    removed = photo_service.delete_group(db, storage, first.group.id)

    assert removed == 2
    assert db.query(ComparisonGroup).count() == 0
    assert [p.id for p in db.query(Photo).all()] == [other.photos[0].id]
    assert sorted(storage.list_files()) == sorted([other.photos[0].filename, other.photos[0].thumb_filename])


def test_list_photos_filters_by_period(db, storage):
    photo_service.upload(db, storage, [_jpeg()], [_meta("BEFORE", "2024-03-05 09:00")], area_name="Gudang A")
    photo_service.upload(db, storage, [_jpeg()], [_meta(None, "2024-03-20 09:00")], area_name="Gudang A")
    photo_service.upload(db, storage, [_jpeg()], [_meta(None, "2024-04-02 09:00")], area_name="Gudang A")

    _, total = photo_service.list_photos(db, period="month", date="2024-03-10")
    assert total == 2
    _, total = photo_service.list_photos(db, period="day", date="2024-03-05")
    assert total == 1
    _, total = photo_service.list_photos(db, period="week", date="2024-03-21")
    assert total == 1
    photos, total = photo_service.list_photos(db, category="before", period="month", date="2024-03-01")
    assert total == 1
    assert photos[0].category == "BEFORE"


def test_list_photos_by_group_ignores_period(db, storage):
    first = photo_service.upload(
        db, storage, [_jpeg()], [_meta("BEFORE", "2020-01-01 08:00")],
        area_name="Gudang A", group_title="Lama",
    )

    photos, total = photo_service.list_photos(db, comparison_group_id=first.group.id)

    assert total == 1
    assert photos[0].id == first.photos[0].id


def test_group_crud(db, storage):
    group = photo_service.create_group(db, GroupCreate(title=" Atap ", area_name="Gudang B"))
    assert group.title == "Atap"
    assert group.area.name == "Gudang B"

    updated = photo_service.update_group(db, group.id, GroupUpdate(keterangan="bocor"))
    assert updated.keterangan == "bocor"
    assert updated.title == "Atap"

    groups, total = photo_service.list_groups(db, area_id=group.area_id)
    assert total == 1
    assert groups[0].id == group.id

    assert photo_service.delete_group(db, storage, group.id) == 0


def test_unique_slot_constraint_catches_concurrent_upload(db, storage, monkeypatch):
    first = _upload(db, storage, ["BEFORE"], area_name="Gudang A", group_title="Pintu depan")
    files_before = storage.list_files()

    # Both uploads passed validation before either committed.
    monkeypatch.setattr(PhotoService, "validate_upload_against_group", staticmethod(lambda *args: None))
    with pytest.raises(CategorySlotTakenError):
        _upload(db, storage, ["BEFORE"], group_id=first.group.id)

    assert db.query(Photo).count() == 1
    assert storage.list_files() == files_before


def test_other_constraint_failures_are_not_reported_as_slot_taken(db, storage):
    first = _upload(db, storage, ["BEFORE"], area_name="Gudang A", group_title="Pintu depan")
    files_before = storage.list_files()

    with pytest.raises(IntegrityError):
        PhotoService.ingest(
            db, storage, [_jpeg()], [FileMetadata(category="DURING")], first.area, first.group
        )

    assert db.query(Photo).count() == 1
    assert storage.list_files() == files_before


def test_slot_conflict_detection_by_error_text():
    def error(message):
        return IntegrityError("INSERT INTO photos", {}, Exception(message))

    assert PhotoService.is_slot_conflict(
        error('duplicate key value violates unique constraint "uq_photo_group_category"')
    )
    assert PhotoService.is_slot_conflict(
        error("UNIQUE constraint failed: photos.comparison_group_id, photos.category")
    )
    assert not PhotoService.is_slot_conflict(error("FOREIGN KEY constraint failed"))
    assert not PhotoService.is_slot_conflict(error("CHECK constraint failed: chk_photo_category"))
