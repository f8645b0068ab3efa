"""
Supported Vendor Repository - Data Access Layer for supported_vendors

Handles vendor catalog rows, admin credentials, record priorities and the
per-vendor sync schedule/status columns.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any

from psycopg2.extras import Json

from bestprice.domain.vendor import SupportedVendor
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

EDITABLE_COLUMNS = (
    'name', 'vendor_short_code', 'description', 'api_type', 'vendor_type',
    'name_aliases', 'credential_fields', 'features', 'logo_url', 'website_url',
    'is_enabled', 'sort_order',
)
JSON_COLUMNS = ('name_aliases', 'credential_fields', 'features', 'admin_credentials')

# Columns written by sync services and schedule endpoints
SYNC_COLUMN_PREFIXES = ('bill_hicks_', 'chattanooga_', 'sports_south_', 'lipseys_')
SYNC_COMMON_COLUMNS = (
    'last_catalog_sync', 'catalog_sync_status', 'catalog_sync_error',
    'last_sync_new_records', 'last_sync_records_updated',
    'last_sync_records_skipped', 'last_sync_records_failed',
)

IDENTIFIER_CONDITION = """(
    lower(trim(vendor_short_code)) = lower(trim(%s))
    OR lower(trim(name)) = lower(trim(%s))
    OR EXISTS (
        SELECT 1 FROM jsonb_array_elements_text(COALESCE(name_aliases, '[]'::jsonb)) AS alias
        WHERE lower(trim(alias)) = lower(trim(%s))
    )
)"""


def _is_sync_column(column: str) -> bool:
    return column.startswith(SYNC_COLUMN_PREFIXES) or column in SYNC_COMMON_COLUMNS


class SupportedVendorRepository:
    """Repository for supported vendor data access"""

    def find_all(self, enabled_only: bool = False) -> List[SupportedVendor]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "is_enabled = TRUE" if enabled_only else "1=1"
            cursor.execute(f"""
                SELECT * FROM supported_vendors
                WHERE {where_clause}
                ORDER BY sort_order, name
            """)
            return [SupportedVendor(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, vendor_id: int) -> Optional[SupportedVendor]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM supported_vendors WHERE id = %s", (vendor_id,))
            row = cursor.fetchone()
            return SupportedVendor(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_by_identifier(self, identifier: str) -> Optional[SupportedVendor]:
        """
        Resolve a vendor by numeric id, short code, name or name alias

        Matching on text is case-insensitive and ignores surrounding spaces.
        """
        identifier = str(identifier or '').strip()
        if not identifier:
            return None
        if identifier.isdigit():
            return self.find_by_id(int(identifier))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT * FROM supported_vendors
                WHERE {IDENTIFIER_CONDITION}
                ORDER BY id
                LIMIT 1
            """, (identifier, identifier, identifier))
            row = cursor.fetchone()
            return SupportedVendor(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def get_record_priority(self, identifier: str) -> Optional[int]:
        """
        Raw product_record_priority for a vendor short code or name

        Returns None when the vendor is unknown or has no priority.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT product_record_priority
                FROM supported_vendors
                WHERE lower(trim(vendor_short_code)) = lower(trim(%s))
                   OR lower(trim(name)) = lower(trim(%s))
                LIMIT 1
            """, (identifier, identifier))
            row = cursor.fetchone()
            return row['product_record_priority'] if row else None
        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> SupportedVendor:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            columns, placeholders, params = build_insert(
                fields, EDITABLE_COLUMNS + ('product_record_priority',), JSON_COLUMNS
            )
            if 'product_record_priority' not in fields:
                # New vendors go to the bottom of the priority list
                columns += ", product_record_priority"
                placeholders += ", (SELECT COALESCE(MAX(product_record_priority), 0) + 1 FROM supported_vendors)"

            cursor.execute(f"""
                INSERT INTO supported_vendors ({columns})
                VALUES ({placeholders})
                RETURNING *
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return SupportedVendor(**row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, vendor_id: int, fields: Dict[str, Any]) -> Optional[SupportedVendor]:
        """
        Partial update of editable and sync/schedule columns

        product_record_priority is changed through set_record_priority only.
        """
        allowed = list(EDITABLE_COLUMNS) + [c for c in fields if _is_sync_column(c)]
        set_clause, params = build_set_clause(fields, allowed, JSON_COLUMNS)
        if not set_clause:
            return self.find_by_id(vendor_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE supported_vendors
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, params + [vendor_id])
            row = cursor.fetchone()
            conn.commit()
            return SupportedVendor(**row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_record_priority(self, vendor_id: int, priority: int) -> Optional[SupportedVendor]:
        """
        Assign a priority, swapping with the vendor that currently holds it

        Keeps product_record_priority unique across vendors.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT id, product_record_priority FROM supported_vendors WHERE id = %s FOR UPDATE",
                (vendor_id,)
            )
            current = cursor.fetchone()
            if not current:
                return None

            cursor.execute(
                "SELECT id FROM supported_vendors WHERE product_record_priority = %s AND id <> %s FOR UPDATE",
                (priority, vendor_id)
            )
            holder = cursor.fetchone()

            if holder:
                # Park the holder to avoid the unique constraint while swapping
                cursor.execute(
                    "UPDATE supported_vendors SET product_record_priority = NULL WHERE id = %s",
                    (holder['id'],)
                )

            cursor.execute("""
                UPDATE supported_vendors
                SET product_record_priority = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (priority, vendor_id))
            row = cursor.fetchone()

            if holder:
                cursor.execute("""
                    UPDATE supported_vendors
                    SET product_record_priority = %s, updated_at = NOW()
                    WHERE id = %s
                """, (current['product_record_priority'], holder['id']))

            conn.commit()
            return SupportedVendor(**row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, vendor_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM supported_vendors WHERE id = %s RETURNING id", (vendor_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def get_admin_credentials(self, vendor_id: int) -> Optional[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT admin_credentials FROM supported_vendors WHERE id = %s", (vendor_id,))
            row = cursor.fetchone()
            return row['admin_credentials'] if row else None
        finally:
            cursor.close()
            conn.close()

    def save_admin_credentials(
        self,
        vendor_id: int,
        credentials: Dict[str, Any],
        connection_status: str = 'pending_test'
    ):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE supported_vendors
                SET admin_credentials = %s,
                    admin_connection_status = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (Json(credentials), connection_status, vendor_id))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_admin_connection_status(self, vendor_id: int, connection_status: str):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE supported_vendors
                SET admin_connection_status = %s, updated_at = NOW()
                WHERE id = %s
            """, (connection_status, vendor_id))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def claim_sync(self, vendor_id: int, status_column: str) -> bool:
        """
        Atomically mark a sync as in_progress

        Returns False when that sync is already running.
        """
        if not _is_sync_column(status_column) or not status_column.endswith('_status'):
            raise ValueError(f"Not a sync status column: {status_column}")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE supported_vendors
                SET {status_column} = 'in_progress', updated_at = NOW()
                WHERE id = %s AND COALESCE({status_column}, '') <> 'in_progress'
                RETURNING id
            """, (vendor_id,))
            claimed = cursor.fetchone() is not None
            conn.commit()
            return claimed
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
