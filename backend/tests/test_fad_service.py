import pytest

from fadtrack.core.exceptions import ResourceAlreadyExistsError, ValidationError
from fadtrack.models.fad import Fad
from fadtrack.schemas.fad import FadWrite, VendorCreate, VendorUpdate
from fadtrack.services.fad_service import fad_service, normalize_no_fad


def _fad(db, no_fad, terima_fad=None, **fields):
    return fad_service.create_fad(db, FadWrite(noFad=no_fad, item=fields.pop("item", "Pompa"), terimaFad=terima_fad, **fields))


def test_no_fad_is_trimmed_and_upper_cased():
    assert normalize_no_fad("  fad/001-a ") == "FAD/001-A"
    with pytest.raises(ValidationError):
        normalize_no_fad("   ")
    with pytest.raises(ValidationError):
        normalize_no_fad("FAD#1")


def test_create_requires_item_and_parses_dates(db):
    with pytest.raises(ValidationError):
        fad_service.create_fad(db, FadWrite(noFad="F-1", item="  "))

    fad = _fad(db, "f-1", "05/03/2024", bast="not a date")
    assert fad.no_fad == "F-1"
    assert fad.terima_fad.year == 2024 and fad.terima_fad.month == 3 and fad.terima_fad.day == 5
    assert fad.bast is None


def test_vendor_name_links_existing_vendor(db):
    vendor = fad_service.create_vendor(db, VendorCreate(name="PT Maju"))

    linked = _fad(db, "F-1", vendor="PT Maju")
    unlinked = _fad(db, "F-2", vendor="PT Lain")

    assert linked.vendor_id == vendor.id
    assert unlinked.vendor_id is None


def test_search_matches_day_month_and_text(db):
    _fad(db, "F-1", "2024-03-05", status="Selesai")
    _fad(db, "F-2", "2024-03-20", item="Genset")
    _fad(db, "F-3", "2024-04-01", keterangan="dikirim 2024-03")

    _, total = fad_service.list_fads(db, search="2024-03-05")
    assert total == 1

    rows, total = fad_service.list_fads(db, search="2024-03")
    assert total == 3
    assert [r.no_fad for r in rows] == ["F-3", "F-2", "F-1"]

    _, total = fad_service.list_fads(db, search="2024-03", fields=["terimaFad"])
    assert total == 2

    rows, _ = fad_service.list_fads(db, search="genset")
    assert [r.no_fad for r in rows] == ["F-2"]

    rows, _ = fad_service.list_fads(db, status="selesai")
    assert [r.no_fad for r in rows] == ["F-1"]


def test_search_matches_vendor_name(db):
    fad_service.create_vendor(db, VendorCreate(name="PT Maju"))
    _fad(db, "F-1", vendor="PT Maju")
    _fad(db, "F-2")

    rows, total = fad_service.list_fads(db, search="maju", fields=["vendorRel.name"])
    assert total == 1
    assert rows[0].vendor_rel.name == "PT Maju"


def test_update_returns_change_map(db):
    fad = _fad(db, "F-1", "2024-03-05", status="Proses")

    _, changes = fad_service.update_fad(db, fad.id, FadWrite(status="Selesai", item="Pompa"))
    assert changes == {"status": {"from": "Proses", "to": "Selesai"}}

    _, changes = fad_service.update_fad(db, fad.id, FadWrite(status="Selesai"))
    assert changes == {}


def test_vendor_crud_and_delete_unlinks(db):
    vendor = fad_service.create_vendor(db, VendorCreate(name="PT Maju"))
    with pytest.raises(ResourceAlreadyExistsError):
        fad_service.create_vendor(db, VendorCreate(name="PT Maju"))

    fad = _fad(db, "F-1", vendor="PT Maju")
    updated = fad_service.update_vendor(db, vendor.id, VendorUpdate(active=False))
    assert updated.active is False

    fad_service.delete_vendor(db, vendor.id)
    db.expire_all()
    row = db.get(Fad, fad.id)
    assert row.vendor_id is None
    assert row.vendor == "PT Maju"
    assert fad_service.list_vendors(db) == []
