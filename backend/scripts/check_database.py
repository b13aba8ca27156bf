"""
Check database connectivity and migration state for FAD Tracker.
Run before starting the app: python scripts/check_database.py

Requires: PostgreSQL installed and running. Create user and database:

  sudo -u postgres psql
  CREATE USER fadtrack WITH PASSWORD 'fadtrack';
  CREATE DATABASE fadtrack_db OWNER fadtrack;
  GRANT ALL PRIVILEGES ON DATABASE fadtrack_db TO fadtrack;
  \q

Then apply the schema: alembic upgrade head
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from fadtrack.config import settings
from fadtrack.core.database import Database


def main():
    database = Database.from_settings(settings)
    try:
        database.open()
        database.ping()
        with database.engine.connect() as conn:
            migrated = "alembic_version" in inspect(conn).get_table_names()
    except SQLAlchemyError as e:
        print(f"Cannot connect to database: {e}")
        if database.url.startswith("postgresql"):
            print("\nCreate database first:")
            print("  psql -U postgres -c \"CREATE USER fadtrack WITH PASSWORD 'fadtrack';\"")
            print("  psql -U postgres -c \"CREATE DATABASE fadtrack_db OWNER fadtrack;\"")
            print("  psql -U postgres -c \"GRANT ALL PRIVILEGES ON DATABASE fadtrack_db TO fadtrack;\"")
        sys.exit(1)
    finally:
        database.close()

    print("Database connection OK.")
    if not migrated:
        print("Migration table missing. Run: alembic upgrade head")
        sys.exit(2)
    print("Migrations applied.")


if __name__ == "__main__":
    main()
