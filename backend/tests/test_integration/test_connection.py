"""
Integration tests against a live PostgreSQL database

Skipped unless DATABASE_URL points at a reachable database that has been
initialized with scripts/setup/init_db.py.

Author: TM3
Date: 2025-10-17
"""
import pytest

import bestprice.models  # noqa: F401  registers the tables
from bestprice.core.database import Base

pytestmark = pytest.mark.integration


def test_database_responds(db_cursor):
    db_cursor.execute("SELECT 1 AS ok")
    assert db_cursor.fetchone()["ok"] == 1


def test_schema_has_every_table(db_cursor):
    db_cursor.execute("""
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'public'
    """)
    tables = {row["table_name"] for row in db_cursor.fetchall()}

    missing = set(Base.metadata.tables.keys()) - tables
    assert not missing, f"Run scripts/setup/init_db.py, missing tables: {sorted(missing)}"


def test_supported_vendors_seeded(db_cursor):
    db_cursor.execute("""
        SELECT vendor_short_code, product_record_priority
        FROM supported_vendors
        WHERE product_record_priority IS NOT NULL
        ORDER BY product_record_priority
    """)
    priorities = [row["product_record_priority"] for row in db_cursor.fetchall()]

    # priorities are unique
    assert len(priorities) == len(set(priorities))
