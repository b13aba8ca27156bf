"""
Import FAD records (and optionally vendors) from JSON exports.
Usage: python scripts/import_fad.py data/dataFad.json [--vendors data/dataVendor.json]
"""

import argparse
import json
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fadtrack.config import settings
from fadtrack.core.database import Database
from fadtrack.services.maintenance_service import import_fad_records


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("fad_file", type=Path, help="JSON array of FAD records")
    parser.add_argument("--vendors", type=Path, default=None, help="optional JSON array of vendors")
    args = parser.parse_args()

    records = json.loads(args.fad_file.read_text(encoding="utf-8"))
    vendors = []
    if args.vendors and args.vendors.exists():
        vendors = json.loads(args.vendors.read_text(encoding="utf-8"))
        print(f"Loaded {len(vendors)} vendor records from {args.vendors}")
    print(f"Loaded {len(records)} records from {args.fad_file}")

    database = Database.from_settings(settings).open()
    db = database.session()
    try:
        report = import_fad_records(db, records, vendors)
    finally:
        db.close()
        database.close()

    print(f"Import finished, processed {report.processed} records ({report.vendors} vendors)")
    if report.failed:
        print(f"Failed records: {', '.join(report.failed)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
