"""Photo and comparison group schemas"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError as PydanticValidationError

from fadtrack.core.exceptions import ValidationError


class PhotoCategory(str, Enum):
    """Comparison slot of a photo"""
    BEFORE = "BEFORE"
    ACTION = "ACTION"
    AFTER = "AFTER"


class PhotoFileMeta(BaseModel):
    """Per-file upload metadata, positionally aligned with the uploaded files"""
    category: Optional[str] = None
    taken_at: Optional[str] = Field(None, alias="takenAt")
    keterangan: Optional[str] = Field(None, max_length=2000)

    class Config:
        populate_by_name = True
        extra = "forbid"


_FILE_META_LIST = TypeAdapter(List[PhotoFileMeta])


def parse_file_meta(raw: Optional[str], file_count: int) -> List[PhotoFileMeta]:
    """
    Parse the ``fileMeta`` form field: a JSON array of metadata objects.

    Missing trailing entries mean "no metadata" for those files.

    Raises:
        ValidationError: malformed JSON, wrong shape, or more entries than files
    """
    if raw is None or not raw.strip():
        return [PhotoFileMeta() for _ in range(file_count)]

    try:
        items = _FILE_META_LIST.validate_json(raw)
    except PydanticValidationError as exc:
        errors = [
            {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError("fileMeta must be a JSON array of metadata objects", details={"errors": errors})

    if len(items) > file_count:
        raise ValidationError(
            "fileMeta has more entries than uploaded files",
            details={"file_meta_count": len(items), "file_count": file_count},
        )
    return items + [PhotoFileMeta() for _ in range(file_count - len(items))]


class PhotoUpdate(BaseModel):
    keterangan: Optional[str] = Field(None, max_length=2000)


class PhotoResponse(BaseModel):
    id: int
    area_id: int
    comparison_group_id: Optional[int] = None
    category: Optional[str] = None
    filename: str
    thumb_filename: Optional[str] = None
    original_name: Optional[str] = None
    url: str
    thumb_url: Optional[str] = None
    mime: Optional[str] = None
    size: Optional[int] = None
    taken_at: Optional[datetime] = None
    keterangan: Optional[str] = None
    created_at: Optional[datetime] = None
    area_name: Optional[str] = None

    class Config:
        from_attributes = True


class PhotoPage(BaseModel):
    total: int
    items: List[PhotoResponse]
    page: int
    pageSize: int


class UploadResponse(BaseModel):
    message: str = "Upload successful"
    count: int
    area_id: int
    comparison_group_id: Optional[int] = None
    photos: List[PhotoResponse]


class GroupCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=191)
    area_id: Optional[int] = Field(None, alias="areaId")
    area_name: Optional[str] = Field(None, alias="areaName", max_length=191)
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class GroupUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=191)
    description: Optional[str] = None
    keterangan: Optional[str] = None


class GroupResponse(BaseModel):
    id: int
    title: str
    area_id: Optional[int] = None
    description: Optional[str] = None
    keterangan: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupStatusResponse(GroupResponse):
    """Group with its photos and completion status"""
    photos: List[PhotoResponse] = []
    photo_count: int = 0
    categories: Dict[str, int] = {}
    is_complete: bool = False
    can_add_photos: bool = True


class GroupPage(BaseModel):
    total: int
    items: List[GroupStatusResponse]
    page: int
    pageSize: int


def group_status_payload(group: Any, counts: Dict[str, int], complete: bool) -> GroupStatusResponse:
    base = GroupResponse.model_validate(group).model_dump()
    photos = [PhotoResponse.model_validate(p) for p in group.photos]
    return GroupStatusResponse(
        **base,
        photos=photos,
        photo_count=len(photos),
        categories=counts,
        is_complete=complete,
        can_add_photos=not complete,
    )
