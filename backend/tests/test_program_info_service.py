import io
from types import SimpleNamespace

import pytest

from conftest import jpeg_bytes
from fadtrack.core.exceptions import ResourceNotFoundError, UploadRejectedError
from fadtrack.models.program_info import ProgramInfoImage
from fadtrack.schemas.program_info import DisplayOrderItem, ProgramInfoUpdate
from fadtrack.services.photo_service import IncomingFile
from fadtrack.services import program_info_service as program_info_module
from fadtrack.services.program_info_service import info_filename, program_info_service


def _image(name="Chart.jpg"):
    return IncomingFile(filename=name, content_type="image/jpeg", stream=io.BytesIO(jpeg_bytes()))


def test_info_filename_is_sanitized():
    assert (
        info_filename("My Chart (v2).PNG", timestamp_ms=1700000000000, token="a1b2c3")
        == "info_1700000000000_a1b2c3_My_Chart__v2_.png"
    )
    assert info_filename("", timestamp_ms=1, token="ff") == "info_1_ff_image"


def test_same_name_in_same_millisecond_gets_distinct_files(db, storage, monkeypatch):
    monkeypatch.setattr(program_info_module, "time", SimpleNamespace(time=lambda: 1700000000.0))

    first = program_info_service.upload_image(db, storage, _image("Chart.jpg"))
    second = program_info_service.upload_image(db, storage, _image("Chart.jpg"))

    assert first.filename != second.filename
    assert first.filename.startswith("info_1700000000000_")
    assert storage.exists(first.filename)
    assert storage.exists(second.filename)


def test_upload_appends_to_display_order(db, storage):
    first = program_info_service.upload_image(db, storage, _image("a.jpg"), title="Safety")
    second = program_info_service.upload_image(db, storage, _image("b.jpg"))

    assert first.display_order == 0
    assert second.display_order == 1
    assert first.filename.startswith("info_")
    assert first.thumb_filename is not None
    assert storage.exists(first.filename)
    assert storage.exists(first.thumb_filename)
    assert [i.id for i in program_info_service.list_images(db)] == [first.id, second.id]


def test_upload_rejects_non_images(db, storage):
    pdf = IncomingFile(filename="doc.pdf", content_type="application/pdf", stream=io.BytesIO(b"%PDF"))
    with pytest.raises(UploadRejectedError):
        program_info_service.upload_image(db, storage, pdf)
    assert storage.list_files() == []


def test_reorder_applies_all_positions(db, storage):
    a = program_info_service.upload_image(db, storage, _image("a.jpg"))
    b = program_info_service.upload_image(db, storage, _image("b.jpg"))

    count = program_info_service.update_display_order(
        db, [DisplayOrderItem(id=a.id, display_order=5), DisplayOrderItem(id=b.id, display_order=1)]
    )

    assert count == 2
    assert [i.id for i in program_info_service.list_images(db)] == [b.id, a.id]


def test_reorder_with_unknown_id_changes_nothing(db, storage):
    a = program_info_service.upload_image(db, storage, _image("a.jpg"))

    with pytest.raises(ResourceNotFoundError):
        program_info_service.update_display_order(
            db, [DisplayOrderItem(id=a.id, display_order=9), DisplayOrderItem(id=999, display_order=0)]
        )

    db.expire_all()
    assert db.get(ProgramInfoImage, a.id).display_order == 0


def test_update_and_delete_image(db, storage):
    image = program_info_service.upload_image(db, storage, _image())

    updated = program_info_service.update_image(db, image.id, ProgramInfoUpdate(title="Jadwal"))
    assert updated.title == "Jadwal"
    assert updated.display_order == 0

    program_info_service.delete_image(db, storage, image.id)
    assert storage.list_files() == []
    with pytest.raises(ResourceNotFoundError):
        program_info_service.get_image(db, image.id)
