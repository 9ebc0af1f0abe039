"""
Check the PostgreSQL database for the dashboard API.
Run once before applying migrations: python scripts/init_postgres.py

Requires: PostgreSQL installed and running. Create user and database:

  sudo -u postgres psql
  CREATE USER dashboard WITH PASSWORD 'dashboard';
  CREATE DATABASE dashboard_db OWNER dashboard;
  GRANT ALL PRIVILEGES ON DATABASE dashboard_db TO dashboard;
  \q
"""

import sys

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from dashboard_api.config import settings


def main():
    url = settings.get_database_url()
    if not url.startswith("postgresql"):
        print("DATABASE_URL is not PostgreSQL. Skipping.")
        return
    try:
        engine = create_engine(url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("PostgreSQL connection OK. Database exists.")
    except SQLAlchemyError as e:
        print(f"Cannot connect to PostgreSQL: {e}")
        print("\nCreate database first:")
        print("  psql -U postgres -c \"CREATE USER dashboard WITH PASSWORD 'dashboard';\"")
        print("  psql -U postgres -c \"CREATE DATABASE dashboard_db OWNER dashboard;\"")
        print("  psql -U postgres -c \"GRANT ALL PRIVILEGES ON DATABASE dashboard_db TO dashboard;\"")
        print("\nThen run: alembic upgrade head")
        sys.exit(1)


if __name__ == "__main__":
    main()
