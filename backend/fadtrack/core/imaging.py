"""Image normalization and thumbnails (Pillow)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

register_heif_opener()

logger = logging.getLogger(__name__)

HEIC_MIME_TYPES = {"image/heic", "image/heif"}
HEIC_EXTENSIONS = {".heic", ".heif"}


def is_heic(filename: str, mime: Optional[str]) -> bool:
    return (mime or "").lower() in HEIC_MIME_TYPES or Path(filename).suffix.lower() in HEIC_EXTENSIONS


def jpeg_name(filename: str) -> str:
    return f"{Path(filename).stem}.jpg"


def thumb_name(filename: str) -> str:
    """``abc.png`` -> ``abc_thumb.png``; HEIC sources get a JPEG thumbnail."""
    path = Path(filename)
    ext = ".jpg" if path.suffix.lower() in HEIC_EXTENSIONS else path.suffix
    return f"{path.stem}_thumb{ext}"


def convert_to_jpeg(src: Path, dest: Path, quality: int = 80) -> None:
    """Re-encode ``src`` as JPEG at ``dest``."""
    with Image.open(src) as img:
        img = ImageOps.exif_transpose(img)
        img.convert("RGB").save(dest, format="JPEG", quality=quality)


def make_thumbnail(src: Path, dest: Path, width: int = 320) -> None:
    """
    Write a ``width``-pixel-wide thumbnail of ``src`` to ``dest``.

    Orientation follows EXIF. PNG sources keep PNG, everything else is
    written as JPEG.
    """
    with Image.open(src) as img:
        img = ImageOps.exif_transpose(img)
        if img.width > width:
            height = max(1, round(img.height * width / img.width))
            img = img.resize((width, height), Image.Resampling.LANCZOS)

        if dest.suffix.lower() == ".png":
            img.save(dest, format="PNG", compress_level=8)
        else:
            img.convert("RGB").save(dest, format="JPEG", quality=70)
