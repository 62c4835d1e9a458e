#!/usr/bin/env python3
"""Remove every listing, location, room, lease and application. Media in S3 is left alone."""
import sys
from pathlib import Path

# Ensure rentcatalog is importable when run from the project root or backend/
backend = Path(__file__).resolve().parent.parent
if str(backend) not in sys.path:
    sys.path.insert(0, str(backend))

from rentcatalog.config import settings
from rentcatalog.database import flush_db

if __name__ == "__main__":
    if "--yes" not in sys.argv:
        print(f"This deletes all catalog rows in {settings.database_url.rsplit('@', 1)[-1]}. Re-run with --yes.")
        sys.exit(1)
    flush_db()
    print("Catalog flushed. Listings, locations, rooms, leases and applications are empty.")
