#!/usr/bin/env python3
"""
Import a JSON export of the old document store into the ProcTrack database.

Usage:
    python scripts/import_legacy_snapshot.py export.json [--dry-run]

Safe to re-run: ids already in the database are skipped.
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path to import proctrack modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from proctrack.database import SessionLocal, init_db
from proctrack.services.legacy_import import import_snapshot


def _print_summary(summary) -> None:
    for collection in ("shelves", "cabinets", "folders", "records", "users"):
        created = summary.created.get(collection, 0)
        skipped = summary.skipped.get(collection, 0)
        print(f"  {collection:<9} created {created:>5}   skipped {skipped:>5}")
    print(f"  stack numbers changed: {summary.renumbered}")
    for line in summary.orphans:
        print(f"[Orphan] {line}")
    for line in summary.invalid:
        print(f"[Invalid] {line}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a legacy ProcTrack export")
    parser.add_argument("snapshot", type=Path, help="JSON export file")
    parser.add_argument("--dry-run", action="store_true", help="parse and report without writing")
    args = parser.parse_args(argv)

    if not args.snapshot.exists():
        print(f"[Error] File not found: {args.snapshot}")
        return 1
    with open(args.snapshot, encoding="utf-8") as f:
        snapshot = json.load(f)

    print("[Setup] Creating database tables...")
    init_db()
    db = SessionLocal()
    try:
        if args.dry_run:
            summary = import_snapshot(db, snapshot, commit=False)
            db.rollback()
            print("[Dry run] Nothing written")
        else:
            summary = import_snapshot(db, snapshot)
        _print_summary(summary)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
