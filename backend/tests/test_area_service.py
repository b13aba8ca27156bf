import pytest

from fadtrack.core.exceptions import (
    AreaRequiredError,
    BusinessLogicError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from fadtrack.models.area import Area
from fadtrack.models.photo import Photo
from fadtrack.services.area_service import area_service


def test_upsert_by_name_is_idempotent(db):
    first = area_service.upsert_by_name(db, "Gudang A")
    second = area_service.upsert_by_name(db, "  Gudang A ")

    assert first.id == second.id
    assert db.query(Area).count() == 1


def test_upsert_by_name_commits_new_area(db):
    area = area_service.upsert_by_name(db, "Gudang B")
    db.rollback()

    assert db.query(Area).filter(Area.name == "Gudang B").one().id == area.id


def test_resolve_area_prefers_id_over_name(db):
    area = area_service.create_area(db, "Gudang A")

    assert area_service.resolve_area(db, area.id, "Something else").id == area.id
    assert db.query(Area).count() == 1


def test_resolve_area_requires_id_or_name(db):
    with pytest.raises(AreaRequiredError):
        area_service.resolve_area(db, None, "   ")
    with pytest.raises(ResourceNotFoundError):
        area_service.resolve_area(db, 999, None)


def test_update_area_rejects_name_clash(db):
    area_service.create_area(db, "Gudang A")
    other = area_service.create_area(db, "Gudang B")

    with pytest.raises(ResourceAlreadyExistsError):
        area_service.update_area(db, other.id, "Gudang A")
    assert area_service.update_area(db, other.id, "Gudang C").name == "Gudang C"


def test_delete_area_refused_while_photos_reference_it(db):
    area = area_service.create_area(db, "Gudang A")
    db.add(Photo(area_id=area.id, filename="a.jpg", url="/uploads/TPS/a.jpg"))
    db.commit()

    assert area_service.has_photos(db, area.id)
    with pytest.raises(BusinessLogicError):
        area_service.delete_area(db, area.id)

    db.query(Photo).delete()
    db.commit()
    area_service.delete_area(db, area.id)
    assert db.query(Area).count() == 0
