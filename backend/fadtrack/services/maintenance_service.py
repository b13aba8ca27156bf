"""Maintenance jobs: orphaned upload cleanup and FAD data import."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from fadtrack.core.dates import parse_datetime
from fadtrack.core.storage import FileStorage
from fadtrack.models.fad import Fad
from fadtrack.models.photo import Photo
from fadtrack.models.program_info import ProgramInfoImage
from fadtrack.services.fad_service import fad_service

logger = logging.getLogger(__name__)

IGNORED_FILES = {"Thumbs.db", ".DS_Store", ".gitkeep"}


@dataclass
class ImportReport:
    processed: int = 0
    failed: List[str] = field(default_factory=list)
    vendors: int = 0


def referenced_filenames(db: Session) -> Set[str]:
    names: Set[str] = set()
    for model in (Photo, ProgramInfoImage):
        for filename, thumb in db.query(model.filename, model.thumb_filename).all():
            names.update(n for n in (filename, thumb) if n)
    return names


def find_orphaned_files(db: Session, storage: FileStorage) -> List[str]:
    """Files under the upload root that no photo or program info row points at."""
    referenced = referenced_filenames(db)
    return [
        name for name in storage.list_files()
        if name not in referenced and name not in IGNORED_FILES
    ]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def import_fad_records(
    db: Session,
    records: Iterable[Dict[str, Any]],
    vendor_records: Optional[Iterable[Dict[str, Any]]] = None,
) -> ImportReport:
    """
    Load FAD rows exported as JSON (camelCase keys).

    Vendors are upserted by name, taking the ``active`` flag from the
    optional vendor list. Records with an ``id`` replace the existing
    row; a failing record is rolled back and reported, the rest go on.
    """
    report = ImportReport()
    vendor_meta: Dict[str, bool] = {}
    for v in vendor_records or []:
        name = _text(v.get("name") or v.get("vendor")).strip()
        if name:
            vendor_meta[name] = bool(v.get("active", True))

    vendor_ids: Dict[str, int] = {}
    seen_vendors: Set[str] = set()
    for record in records:
        label = _text(record.get("id") or record.get("noFad"))
        try:
            vendor_name = _text(record.get("vendor")).strip()
            vendor_id = None
            if vendor_name:
                if vendor_name not in vendor_ids:
                    vendor = fad_service.upsert_vendor(db, vendor_name, vendor_meta.get(vendor_name, True))
                    vendor_ids[vendor_name] = vendor.id
                    seen_vendors.add(vendor_name)
                vendor_id = vendor_ids[vendor_name]

            values = dict(
                no_fad=_text(record.get("noFad")),
                item=_text(record.get("item")),
                plant=_text(record.get("plant")),
                terima_fad=parse_datetime(record.get("terimaFad")),
                terima_bbm=parse_datetime(record.get("terimaBbm")),
                vendor=_text(record.get("vendor")),
                vendor_id=vendor_id,
                status=_text(record.get("status")),
                deskripsi=_text(record.get("deskripsi")),
                keterangan=_text(record.get("keterangan")),
                bast=parse_datetime(record.get("bast")),
            )

            fad = db.query(Fad).filter(Fad.id == record["id"]).first() if record.get("id") else None
            if fad is None:
                fad = Fad(**values)
                if record.get("id"):
                    fad.id = record["id"]
                db.add(fad)
            else:
                for name, value in values.items():
                    setattr(fad, name, value)
            db.commit()
            report.processed += 1
        except Exception as exc:
            db.rollback()
            vendor_ids.clear()
            logger.error(f"Error importing record {label}: {exc}")
            report.failed.append(label)
            continue

        if report.processed % 100 == 0:
            logger.info(f"Inserted/updated {report.processed} records")

    report.vendors = len(seen_vendors)
    return report
