"""
Vendor Inventory Repository - stock levels reported by vendor feeds

Author: TM3
Date: 2025-10-17
"""
from typing import Dict, List, Tuple, Any

from psycopg2.extras import execute_values

from bestprice.core.database import get_db_connection_dict


class VendorInventoryRepository:

    def find_quantities(self, vendor_id: int) -> Dict[str, Dict[str, Any]]:
        """Current rows keyed by vendor_sku"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, vendor_sku, quantity_available
                FROM vendor_inventory
                WHERE supported_vendor_id = %s
            """, (vendor_id,))
            return {row['vendor_sku']: dict(row) for row in cursor.fetchall()}
        finally:
            cursor.close()
            conn.close()

    def bulk_apply(
        self,
        vendor_id: int,
        inserts: List[Tuple[str, int]],
        updates: List[Tuple[int, int]]
    ):
        """
        Insert new (vendor_sku, quantity) rows and update (id, quantity) rows
        in a single transaction
        """
        if not inserts and not updates:
            return

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if inserts:
                execute_values(cursor, """
                    INSERT INTO vendor_inventory (supported_vendor_id, vendor_sku, quantity_available, last_updated)
                    VALUES %s
                    ON CONFLICT (supported_vendor_id, vendor_sku)
                    DO UPDATE SET quantity_available = EXCLUDED.quantity_available, last_updated = NOW()
                """, [(vendor_id, sku, qty) for sku, qty in inserts],
                    template="(%s, %s, %s, NOW())")

            if updates:
                execute_values(cursor, """
                    UPDATE vendor_inventory AS vi
                    SET quantity_available = data.quantity, last_updated = NOW()
                    FROM (VALUES %s) AS data (id, quantity)
                    WHERE vi.id = data.id
                """, updates)

            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
