"""
Product Repository - Data Access Layer for the master catalog

Products are keyed by UPC; vendor-specific cost and stock go to
vendor_product_mappings.

Author: TM3
Date: 2025-10-17
"""
from typing import Optional, Dict, Any, List

from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

PRODUCT_COLUMNS = (
    'upc', 'name', 'brand', 'manufacturer_part_number', 'model', 'caliber',
    'category', 'description', 'image_url', 'source',
)


class ProductRepository:

    def find_by_upc(self, upc: str) -> Optional[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM products WHERE upc = %s", (upc,))
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> int:
        columns, placeholders, params = build_insert(fields, PRODUCT_COLUMNS)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products ({columns})
                VALUES ({placeholders})
                RETURNING id
            """, params)
            product_id = cursor.fetchone()['id']
            conn.commit()
            return product_id
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: int, fields: Dict[str, Any]) -> bool:
        set_clause, params = build_set_clause(fields, PRODUCT_COLUMNS)
        if not set_clause:
            return False

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING id
            """, params + [product_id])
            updated = cursor.fetchone() is not None
            conn.commit()
            return updated
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def upsert_vendor_mapping(
        self,
        vendor_id: int,
        vendor_sku: str,
        product_id: int,
        vendor_cost=None,
        map_price=None,
        msrp_price=None,
        quantity_available: Optional[int] = None
    ):
        """Record the vendor's SKU, cost and stock for a product"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO vendor_product_mappings (
                    supported_vendor_id, vendor_sku, product_id, vendor_cost,
                    map_price, msrp_price, quantity_available, last_price_update
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, NOW())
                ON CONFLICT (supported_vendor_id, vendor_sku)
                DO UPDATE SET
                    product_id = EXCLUDED.product_id,
                    vendor_cost = COALESCE(EXCLUDED.vendor_cost, vendor_product_mappings.vendor_cost),
                    map_price = COALESCE(EXCLUDED.map_price, vendor_product_mappings.map_price),
                    msrp_price = COALESCE(EXCLUDED.msrp_price, vendor_product_mappings.msrp_price),
                    quantity_available = COALESCE(EXCLUDED.quantity_available, vendor_product_mappings.quantity_available),
                    last_price_update = NOW(),
                    updated_at = NOW()
            """, (vendor_id, vendor_sku, product_id, vendor_cost, map_price, msrp_price, quantity_available))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def count_by_vendor(self, vendor_id: int, source: str) -> Dict[str, int]:
        """Catalog size for a vendor: mapped SKUs and products it is the source of"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    (SELECT COUNT(*) FROM vendor_product_mappings WHERE supported_vendor_id = %s) as mapped_skus,
                    (SELECT COUNT(*) FROM products WHERE source = %s) as sourced_products
            """, (vendor_id, source))
            row = cursor.fetchone()
            return {'mapped_skus': row['mapped_skus'], 'sourced_products': row['sourced_products']}
        finally:
            cursor.close()
            conn.close()
