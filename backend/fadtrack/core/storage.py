"""Local file storage for uploaded images."""

from __future__ import annotations

import logging
import os
import secrets
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    """A blob written under the storage root."""

    filename: str
    size: int


class FileStorage:
    """
    Named blobs under one upload directory.

    Filenames are flat (no sub-paths) and every public URL is
    ``url_prefix/<filename>``.
    """

    def __init__(self, root: str | Path, url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path(self, filename: str) -> Path:
        name = os.path.basename(filename)
        if not name or name != filename:
            raise ValueError(f"Invalid storage filename: {filename!r}")
        return self.root / name

    def url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def exists(self, filename: str) -> bool:
        return self.path(filename).exists()

    @staticmethod
    def random_name(original_name: Optional[str]) -> str:
        ext = Path(original_name or "").suffix.lower()
        return f"{secrets.token_hex(16)}{ext}"

    def save(self, stream: BinaryIO, filename: str, max_bytes: Optional[int] = None) -> StoredFile:
        """
        Copy ``stream`` into ``filename``.

        Raises:
            OverflowError: if ``max_bytes`` is exceeded; nothing is left on disk.
        """
        self.ensure_root()
        target = self.path(filename)
        written = 0
        try:
            with open(target, "xb") as out:
                while True:
                    chunk = stream.read(1024 * 1024)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise OverflowError(f"{filename} exceeds {max_bytes} bytes")
                    out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        return StoredFile(filename=target.name, size=written)

    def rename(self, filename: str, new_filename: str) -> None:
        shutil.move(str(self.path(filename)), str(self.path(new_filename)))

    def delete(self, filename: Optional[str]) -> bool:
        """Best-effort removal. Filesystem errors are logged, never raised."""
        if not filename:
            return False
        try:
            self.path(filename).unlink()
            return True
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as exc:
            logger.warning("Failed to delete stored file %s: %s", filename, exc)
            return False

    def delete_many(self, filenames: Iterable[Optional[str]]) -> int:
        return sum(1 for name in filenames if self.delete(name))

    def list_files(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file())
