"""
ASN Repository - Data Access Layer for advanced ship notices

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Any

from psycopg2.extras import Json

from bestprice.domain.asn import Asn, AsnItem
from bestprice.core.database import get_db_connection_dict

ASN_SELECT = """
    SELECT
        a.*,
        o.order_number,
        sv.name as vendor_name,
        s.name as store_name
    FROM asns a
    JOIN orders o ON o.id = a.order_id
    LEFT JOIN supported_vendors sv ON sv.id = a.vendor_id
    LEFT JOIN stores s ON s.id = o.store_id
"""

ASN_ITEM_SELECT = """
    SELECT
        ai.*,
        oi.vendor_sku,
        oi.quantity as quantity_ordered,
        p.name as product_name,
        p.upc
    FROM asn_items ai
    JOIN order_items oi ON oi.id = ai.order_item_id
    LEFT JOIN products p ON p.id = oi.product_id
"""


class AsnRepository:
    """Repository for ASNs; reads are scoped by the owning order's company"""

    def find_all(
        self,
        company_id: int,
        status: Optional[str] = None,
        vendor_id: Optional[int] = None,
        order_id: Optional[int] = None,
        with_items: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Asn], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["o.company_id = %s"]
            params: List[Any] = [company_id]

            if status:
                conditions.append("a.status = %s")
                params.append(status)

            if vendor_id:
                conditions.append("a.vendor_id = %s")
                params.append(vendor_id)

            if order_id:
                conditions.append("a.order_id = %s")
                params.append(order_id)

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM asns a
                JOIN orders o ON o.id = a.order_id
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {ASN_SELECT}
                WHERE {where_clause}
                ORDER BY a.created_at DESC, a.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

            items_by_asn = {}
            if with_items and rows:
                cursor.execute(f"""
                    {ASN_ITEM_SELECT}
                    WHERE ai.asn_id = ANY(%s)
                    ORDER BY ai.asn_id, ai.id
                """, ([row['id'] for row in rows],))
                for item in cursor.fetchall():
                    items_by_asn.setdefault(item['asn_id'], []).append(AsnItem(**item))

            asns = []
            for row in rows:
                data = dict(row)
                data['items'] = items_by_asn.get(row['id'], [])
                asns.append(Asn(**data))
            return asns, total
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, company_id: int, asn_id: int) -> Optional[Asn]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {ASN_SELECT}
                WHERE o.company_id = %s AND a.id = %s
            """, (company_id, asn_id))
            row = cursor.fetchone()
            if not row:
                return None

            cursor.execute(f"""
                {ASN_ITEM_SELECT}
                WHERE ai.asn_id = %s
                ORDER BY ai.id
            """, (asn_id,))
            data = dict(row)
            data['items'] = [AsnItem(**item) for item in cursor.fetchall()]
            return Asn(**data)
        finally:
            cursor.close()
            conn.close()

    def count_for_order(self, order_id: int) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) as total FROM asns WHERE order_id = %s", (order_id,))
            return cursor.fetchone()['total']
        finally:
            cursor.close()
            conn.close()

    def create(self, asn: Asn) -> int:
        """Insert the ASN and its items in one transaction, returns the ASN id"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO asns (
                    asn_number, order_id, vendor_id, status, ship_date,
                    tracking_number, items_shipped, items_total, shipping_cost,
                    notes, raw_data
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                asn.asn_number, asn.order_id, asn.vendor_id, asn.status, asn.ship_date,
                asn.tracking_number, asn.items_shipped, asn.items_total, asn.shipping_cost,
                asn.notes, Json(asn.raw_data) if asn.raw_data is not None else None
            ))
            asn_id = cursor.fetchone()['id']

            for item in asn.items:
                cursor.execute("""
                    INSERT INTO asn_items (asn_id, order_item_id, quantity_shipped, quantity_backordered)
                    VALUES (%s, %s, %s, %s)
                """, (asn_id, item.order_item_id, item.quantity_shipped, item.quantity_backordered))

            conn.commit()
            return asn_id
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
