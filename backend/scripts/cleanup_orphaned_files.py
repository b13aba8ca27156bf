"""
Report files in the upload directory that no photo or program info row references.
Usage: python scripts/cleanup_orphaned_files.py [--delete]
"""

import argparse
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fadtrack.config import settings
from fadtrack.core.database import Database
from fadtrack.core.storage import FileStorage
from fadtrack.services.maintenance_service import find_orphaned_files


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--delete", action="store_true", help="delete orphaned files instead of only listing them")
    args = parser.parse_args()

    storage = FileStorage(settings.get_photo_dir(), settings.get_photo_url_prefix())
    database = Database.from_settings(settings).open()
    db = database.session()
    try:
        orphans = find_orphaned_files(db, storage)
    finally:
        db.close()
        database.close()

    print(f"Upload directory: {storage.root}")
    print(f"Orphaned files: {len(orphans)}")
    for name in orphans:
        print(f"  {name}")

    if args.delete and orphans:
        removed = storage.delete_many(orphans)
        print(f"Deleted {removed} file(s).")


if __name__ == "__main__":
    main()
