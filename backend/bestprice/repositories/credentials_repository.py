"""
Company Vendor Credentials Repository

One row per (company, supported vendor): store-level credentials, the
enabled flag, connection test results and sync stats.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any

from psycopg2.extras import Json

from bestprice.domain.vendor import CompanyVendorCredentials
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause

STATUS_COLUMNS = (
    'is_enabled', 'connection_status', 'last_connection_test', 'connection_error',
    'catalog_sync_enabled', 'catalog_sync_schedule', 'inventory_sync_enabled',
    'last_catalog_sync', 'catalog_sync_status', 'catalog_sync_error',
    'catalog_records_updated', 'last_inventory_sync', 'inventory_sync_status',
    'inventory_sync_error', 'inventory_records_updated',
)


class CompanyVendorCredentialsRepository:

    def find(self, company_id: int, vendor_id: int) -> Optional[CompanyVendorCredentials]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT * FROM company_vendor_credentials
                WHERE company_id = %s AND supported_vendor_id = %s
            """, (company_id, vendor_id))
            row = cursor.fetchone()
            return CompanyVendorCredentials(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_all_for_company(self, company_id: int) -> List[CompanyVendorCredentials]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT * FROM company_vendor_credentials
                WHERE company_id = %s
                ORDER BY supported_vendor_id
            """, (company_id,))
            return [CompanyVendorCredentials(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def save_credentials(self, company_id: int, vendor_id: int, credentials: Dict[str, Any]):
        """Upsert the credential JSON; resets connection_status to not_tested"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO company_vendor_credentials
                    (company_id, supported_vendor_id, credentials, connection_status)
                VALUES (%s, %s, %s, 'not_tested')
                ON CONFLICT (company_id, supported_vendor_id)
                DO UPDATE SET
                    credentials = EXCLUDED.credentials,
                    connection_status = 'not_tested',
                    connection_error = NULL,
                    updated_at = NOW()
            """, (company_id, vendor_id, Json(credentials)))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_status(self, company_id: int, vendor_id: int, fields: Dict[str, Any]):
        """Upsert status/stat columns, creating an empty credential row if needed"""
        set_clause, params = build_set_clause(fields, STATUS_COLUMNS)
        if not set_clause:
            return

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO company_vendor_credentials (company_id, supported_vendor_id, credentials)
                VALUES (%s, %s, '{}'::jsonb)
                ON CONFLICT (company_id, supported_vendor_id) DO NOTHING
            """, (company_id, vendor_id))
            cursor.execute(f"""
                UPDATE company_vendor_credentials
                SET {set_clause}, updated_at = NOW()
                WHERE company_id = %s AND supported_vendor_id = %s
            """, params + [company_id, vendor_id])
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
