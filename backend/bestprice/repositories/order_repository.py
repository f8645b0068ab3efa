"""
Order Repository - Data Access Layer for vendor orders

Handles orders, order items, PO sequences and the totals kept on the order row.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any

from bestprice.domain.order import VendorOrder, OrderItem
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

ORDER_COLUMNS = (
    'store_id', 'vendor_id', 'order_number', 'external_order_number', 'status',
    'order_type', 'submitted_at', 'shipping_cost', 'notes', 'drop_ship_flag',
    'insurance_flag', 'customer', 'delivery_option', 'ffl_number',
    'ship_to_name', 'ship_to_line1', 'ship_to_line2', 'ship_to_city',
    'ship_to_state', 'ship_to_zip', 'billing_name', 'billing_line1',
    'billing_line2', 'billing_city', 'billing_state', 'billing_zip',
    'created_by',
)

ITEM_COLUMNS = (
    'product_id', 'vendor_product_id', 'vendor_sku', 'quantity', 'unit_cost',
    'total_cost', 'vendor_msrp', 'vendor_map_price', 'retail_price',
    'pricing_strategy', 'customer_reference', 'status',
)

ORDER_SELECT = """
    SELECT
        o.*,
        sv.name as vendor_name,
        sv.vendor_short_code as vendor_short_code,
        s.name as store_name
    FROM orders o
    LEFT JOIN supported_vendors sv ON sv.id = o.vendor_id
    LEFT JOIN stores s ON s.id = o.store_id
"""

ITEM_SELECT = """
    SELECT
        oi.*,
        p.name as product_name,
        p.upc,
        p.brand,
        p.manufacturer_part_number
    FROM order_items oi
    LEFT JOIN products p ON p.id = oi.product_id
"""


class OrderRepository:
    """
    Repository for vendor orders

    Reads are scoped by company_id. Writes by order id assume the caller
    already loaded the order through a company-scoped read.
    """

    def _attach_items(self, cursor, order_rows) -> List[VendorOrder]:
        if not order_rows:
            return []

        order_ids = [row['id'] for row in order_rows]
        cursor.execute(f"""
            {ITEM_SELECT}
            WHERE oi.order_id = ANY(%s)
            ORDER BY oi.order_id, oi.id
        """, (order_ids,))

        items_by_order: Dict[int, list] = {}
        for item in cursor.fetchall():
            items_by_order.setdefault(item['order_id'], []).append(OrderItem(**item))

        orders = []
        for row in order_rows:
            order_dict = dict(row)
            order_dict['items'] = items_by_order.get(row['id'], [])
            orders.append(VendorOrder(**order_dict))
        return orders

    def find_all(
        self,
        company_id: int,
        status: Optional[str] = None,
        statuses: Optional[List[str]] = None,
        vendor_id: Optional[int] = None,
        store_id: Optional[int] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[VendorOrder], int]:
        """
        Orders of a company with filters

        Returns:
            Tuple of (orders with items, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["o.company_id = %s"]
            params: List[Any] = [company_id]

            if status:
                conditions.append("o.status = %s")
                params.append(status)

            if statuses:
                conditions.append("o.status = ANY(%s)")
                params.append(list(statuses))

            if vendor_id:
                conditions.append("o.vendor_id = %s")
                params.append(vendor_id)

            if store_id:
                conditions.append("o.store_id = %s")
                params.append(store_id)

            if search:
                conditions.append("(o.order_number ILIKE %s OR o.external_order_number ILIKE %s OR o.customer ILIKE %s)")
                search_param = f"%{search}%"
                params.extend([search_param, search_param, search_param])

            where_clause = " AND ".join(conditions)

            cursor.execute(f"SELECT COUNT(*) as total FROM orders o WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {ORDER_SELECT}
                WHERE {where_clause}
                ORDER BY o.created_at DESC, o.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return self._attach_items(cursor, cursor.fetchall()), total
        finally:
            cursor.close()
            conn.close()

    def find_all_admin(
        self,
        status: Optional[str] = None,
        company_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Orders across companies (no items) for the admin console"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params: List[Any] = []

            if status:
                conditions.append("o.status = %s")
                params.append(status)
            if company_id:
                conditions.append("o.company_id = %s")
                params.append(company_id)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"SELECT COUNT(*) as total FROM orders o WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT
                    o.id, o.company_id, o.order_number, o.status, o.order_type,
                    o.total_amount, o.item_count, o.created_at, o.submitted_at,
                    c.name as company_name, c.slug as company_slug,
                    sv.name as vendor_name, s.name as store_name
                FROM orders o
                JOIN companies c ON c.id = o.company_id
                LEFT JOIN supported_vendors sv ON sv.id = o.vendor_id
                LEFT JOIN stores s ON s.id = o.store_id
                WHERE {where_clause}
                ORDER BY o.created_at DESC, o.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            rows = []
            for row in cursor.fetchall():
                data = dict(row)
                if data.get('total_amount') is not None:
                    data['total_amount'] = float(data['total_amount'])
                rows.append(data)
            return rows, total
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, company_id: int, order_id: int) -> Optional[VendorOrder]:
        orders = self.find_many(company_id, [order_id])
        return orders[0] if orders else None

    def find_many(self, company_id: int, order_ids: List[int]) -> List[VendorOrder]:
        """Orders with items, in the order of order_ids"""
        if not order_ids:
            return []

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {ORDER_SELECT}
                WHERE o.company_id = %s AND o.id = ANY(%s)
            """, (company_id, list(order_ids)))
            orders = self._attach_items(cursor, cursor.fetchall())
            position = {order_id: i for i, order_id in enumerate(order_ids)}
            return sorted(orders, key=lambda o: position.get(o.id, len(position)))
        finally:
            cursor.close()
            conn.close()

    def create(self, company_id: int, fields: Dict[str, Any]) -> int:
        """Insert an order, returns its id"""
        columns, placeholders, params = build_insert(fields, ORDER_COLUMNS)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO orders (company_id, {columns})
                VALUES (%s, {placeholders})
                RETURNING id
            """, [company_id] + params)
            order_id = cursor.fetchone()['id']
            conn.commit()
            return order_id
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, order_id: int, fields: Dict[str, Any]) -> bool:
        set_clause, params = build_set_clause(fields, ORDER_COLUMNS)
        if not set_clause:
            return False

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING id
            """, params + [order_id])
            updated = cursor.fetchone() is not None
            conn.commit()
            return updated
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_many(self, company_id: int, order_ids: List[int]) -> int:
        """Delete orders (items cascade); returns how many were deleted"""
        if not order_ids:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM orders
                WHERE company_id = %s AND id = ANY(%s)
                RETURNING id
            """, (company_id, list(order_ids)))
            deleted = len(cursor.fetchall())
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def add_item(self, order_id: int, fields: Dict[str, Any]) -> int:
        columns, placeholders, params = build_insert(fields, ITEM_COLUMNS)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO order_items (order_id, {columns})
                VALUES (%s, {placeholders})
                RETURNING id
            """, [order_id] + params)
            item_id = cursor.fetchone()['id']
            conn.commit()
            return item_id
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_item(self, order_id: int, item_id: int, fields: Dict[str, Any]) -> bool:
        set_clause, params = build_set_clause(fields, ITEM_COLUMNS)
        if not set_clause:
            return False

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE order_items
                SET {set_clause}, updated_at = NOW()
                WHERE order_id = %s AND id = %s
                RETURNING id
            """, params + [order_id, item_id])
            updated = cursor.fetchone() is not None
            conn.commit()
            return updated
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_items(self, order_id: int, item_ids: List[int]) -> int:
        if not item_ids:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM order_items
                WHERE order_id = %s AND id = ANY(%s)
                RETURNING id
            """, (order_id, list(item_ids)))
            deleted = len(cursor.fetchall())
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def move_items(self, target_order_id: int, source_order_ids: List[int]) -> int:
        """Re-parent every item of the source orders onto the target order"""
        if not source_order_ids:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE order_items
                SET order_id = %s, updated_at = NOW()
                WHERE order_id = ANY(%s)
                RETURNING id
            """, (target_order_id, list(source_order_ids)))
            moved = len(cursor.fetchall())
            conn.commit()
            return moved
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def recalculate_totals(self, order_id: int):
        """total_amount = sum of item totals, item_count = sum of quantities"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE orders o
                SET total_amount = COALESCE(t.total_amount, 0),
                    item_count = COALESCE(t.item_count, 0),
                    updated_at = NOW()
                FROM (
                    SELECT SUM(total_cost) as total_amount, SUM(quantity) as item_count
                    FROM order_items
                    WHERE order_id = %s
                ) t
                WHERE o.id = %s
            """, (order_id, order_id))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def next_po_sequence(self, store_id: int) -> int:
        """
        Increment the store's PO sequence, creating it at 1 when missing

        Returns:
            The new sequence value
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE po_sequences
                SET last_sequence = last_sequence + 1, updated_at = NOW()
                WHERE store_id = %s
                RETURNING last_sequence
            """, (store_id,))
            row = cursor.fetchone()

            if not row:
                cursor.execute("""
                    INSERT INTO po_sequences (store_id, last_sequence)
                    VALUES (%s, 1)
                    ON CONFLICT (store_id)
                    DO UPDATE SET last_sequence = po_sequences.last_sequence + 1, updated_at = NOW()
                    RETURNING last_sequence
                """, (store_id,))
                row = cursor.fetchone()

            conn.commit()
            return row['last_sequence']
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
