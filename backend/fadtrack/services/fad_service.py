"""FAD document and vendor service"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, contains_eager, joinedload

from fadtrack.core.dates import end_of_day, parse_datetime, start_of_day, try_parse_date, try_parse_month
from fadtrack.core.exceptions import ResourceAlreadyExistsError, ResourceNotFoundError, ValidationError
from fadtrack.models.fad import Fad, Vendor
from fadtrack.schemas.fad import NO_FAD_PATTERN, FadWrite, VendorCreate, VendorUpdate

logger = logging.getLogger(__name__)

DATE_FIELDS = ("terima_fad", "terima_bbm", "bast")
TEXT_FIELDS = ("no_fad", "item", "plant", "vendor", "vendor_name", "status", "deskripsi", "keterangan")

# Search field names as the web client sends them.
_FIELD_ALIASES = {
    "noFad": "no_fad",
    "terimaFad": "terima_fad",
    "terimaBbm": "terima_bbm",
    "vendorRel.name": "vendor_name",
}


def normalize_no_fad(value: Optional[str]) -> str:
    """Trim and upper-case a FAD number; raise ValidationError if it is empty or malformed."""
    cleaned = (value or "").strip().upper()
    if not cleaned:
        raise ValidationError("No FAD is required", details={"field": "noFad"})
    if not NO_FAD_PATTERN.match(cleaned):
        raise ValidationError(
            "No FAD may only contain letters, digits, '/', '-', '.' and spaces",
            details={"field": "noFad", "value": value},
        )
    return cleaned


def _canonical_fields(fields: Optional[List[str]]) -> Optional[List[str]]:
    if not fields:
        return None
    known = set(DATE_FIELDS) | set(TEXT_FIELDS)
    mapped = [_FIELD_ALIASES.get(f.strip(), f.strip()) for f in fields if f and f.strip()]
    return [f for f in mapped if f in known] or None


def _json_value(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


class FadService:
    """Service for FAD documents and vendors"""

    @staticmethod
    def _link_vendor(db: Session, fad: Fad) -> None:
        name = (fad.vendor or "").strip()
        if not name:
            fad.vendor_id = None
            return
        vendor = db.query(Vendor).filter(Vendor.name == name).first()
        fad.vendor_id = vendor.id if vendor else None

    @staticmethod
    def get_fad(db: Session, fad_id: str) -> Fad:
        fad = db.query(Fad).options(joinedload(Fad.vendor_rel)).filter(Fad.id == fad_id).first()
        if not fad:
            raise ResourceNotFoundError("FAD")
        return fad

    @staticmethod
    def create_fad(db: Session, data: FadWrite) -> Fad:
        """
        Create a FAD record.

        ``no_fad`` and ``item`` are required; dates that do not parse are
        stored as null.
        """
        item = (data.item or "").strip()
        if not item:
            raise ValidationError("Item is required", details={"field": "item"})

        fad = Fad(
            no_fad=normalize_no_fad(data.no_fad),
            item=item,
            plant=data.plant or None,
            terima_fad=parse_datetime(data.terima_fad),
            terima_bbm=parse_datetime(data.terima_bbm),
            vendor=data.vendor or None,
            status=data.status or None,
            deskripsi=data.deskripsi or None,
            keterangan=data.keterangan or None,
            bast=parse_datetime(data.bast),
        )
        FadService._link_vendor(db, fad)
        db.add(fad)
        db.commit()
        db.refresh(fad)

        logger.info(f"Created FAD {fad.no_fad}")
        return fad

    @staticmethod
    def list_fads(
        db: Session,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        fields: Optional[List[str]] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Fad], int]:
        """
        Search FAD records, newest ``terima_fad`` first.

        A search term that reads as a day (``YYYY-MM-DD``, ``DD/MM/YYYY``,
        ``DD/MM``) or a month (``YYYY-MM``, ``MM/YYYY``) also matches the
        date columns inside that range. Text columns are always matched
        with a case-insensitive contains. ``fields`` restricts both.
        """
        requested = _canonical_fields(fields)
        query = db.query(Fad).outerjoin(Fad.vendor_rel).options(contains_eager(Fad.vendor_rel))

        clauses = []
        term = (search or "").strip()
        if term:
            day = try_parse_date(term)
            date_range = (start_of_day(day), end_of_day(day)) if day else try_parse_month(term)
            if date_range:
                start, end = date_range
                for name in DATE_FIELDS:
                    if requested is None or name in requested:
                        column = getattr(Fad, name)
                        clauses.append(and_(column >= start, column <= end))

            pattern = f"%{term}%"
            for name in TEXT_FIELDS:
                if requested is not None and name not in requested:
                    continue
                column = Vendor.name if name == "vendor_name" else getattr(Fad, name)
                clauses.append(column.ilike(pattern))

        if clauses:
            query = query.filter(or_(*clauses))
        if status and status.strip():
            query = query.filter(Fad.status.ilike(f"%{status.strip()}%"))

        total = query.count()
        rows = (
            query.order_by(Fad.terima_fad.desc(), Fad.created_at.desc())
            .offset(max(0, (page - 1) * limit))
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def update_fad(db: Session, fad_id: str, data: FadWrite) -> Tuple[Fad, Dict[str, Dict[str, Any]]]:
        """
        Apply a partial update.

        Returns:
            (updated row, ``{field: {"from": old, "to": new}}`` for changed fields)
        """
        fad = FadService.get_fad(db, fad_id)
        fields = data.model_dump(exclude_unset=True)

        if "no_fad" in fields:
            fields["no_fad"] = normalize_no_fad(fields["no_fad"])
        if "item" in fields and not (fields["item"] or "").strip():
            raise ValidationError("Item is required", details={"field": "item"})
        for name in DATE_FIELDS:
            if name in fields:
                fields[name] = parse_datetime(fields[name])

        changes: Dict[str, Dict[str, Any]] = {}
        for name, value in fields.items():
            old = getattr(fad, name)
            if old != value:
                changes[name] = {"from": _json_value(old), "to": _json_value(value)}
                setattr(fad, name, value)

        if "vendor" in changes:
            FadService._link_vendor(db, fad)

        if changes:
            db.commit()
            db.refresh(fad)
            logger.info(f"Updated FAD {fad.id}: {', '.join(changes)}")
        return fad, changes

    @staticmethod
    def delete_fad(db: Session, fad_id: str) -> Fad:
        fad = FadService.get_fad(db, fad_id)
        db.delete(fad)
        db.commit()
        logger.info(f"Deleted FAD {fad_id}")
        return fad

    # ---- vendors ---------------------------------------------------------

    @staticmethod
    def list_vendors(db: Session) -> List[Vendor]:
        return db.query(Vendor).order_by(Vendor.name).all()

    @staticmethod
    def get_vendor(db: Session, vendor_id: int) -> Vendor:
        vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
        if not vendor:
            raise ResourceNotFoundError("Vendor")
        return vendor

    @staticmethod
    def create_vendor(db: Session, data: VendorCreate) -> Vendor:
        if db.query(Vendor).filter(Vendor.name == data.name).first():
            raise ResourceAlreadyExistsError(f"Vendor '{data.name}'")
        vendor = Vendor(name=data.name, active=data.active)
        db.add(vendor)
        db.commit()
        db.refresh(vendor)
        return vendor

    @staticmethod
    def upsert_vendor(db: Session, name: str, active: bool = True) -> Vendor:
        """Insert or refresh a vendor by name (import path)."""
        name = name.strip()
        vendor = db.query(Vendor).filter(Vendor.name == name).first()
        if vendor:
            vendor.active = active
        else:
            vendor = Vendor(name=name, active=active)
            db.add(vendor)
        db.flush()
        return vendor

    @staticmethod
    def update_vendor(db: Session, vendor_id: int, data: VendorUpdate) -> Vendor:
        vendor = FadService.get_vendor(db, vendor_id)
        fields = data.model_dump(exclude_unset=True)
        name = fields.get("name")
        if name is not None:
            name = name.strip()
            clash = db.query(Vendor).filter(Vendor.name == name, Vendor.id != vendor_id).first()
            if clash:
                raise ResourceAlreadyExistsError(f"Vendor '{name}'")
            vendor.name = name
        if fields.get("active") is not None:
            vendor.active = fields["active"]
        db.commit()
        db.refresh(vendor)
        return vendor

    @staticmethod
    def delete_vendor(db: Session, vendor_id: int) -> Vendor:
        """Delete a vendor; FAD rows keep their vendor text and lose the link."""
        vendor = FadService.get_vendor(db, vendor_id)
        db.query(Fad).filter(Fad.vendor_id == vendor_id).update(
            {Fad.vendor_id: None}, synchronize_session=False
        )
        db.delete(vendor)
        db.commit()
        return vendor


# Singleton instance
fad_service = FadService()
