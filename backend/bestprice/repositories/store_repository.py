"""
Store Repository - Data Access Layer for stores and store user assignments

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any

from bestprice.domain.organization import Store
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

STORE_COLUMNS = (
    'name', 'slug', 'short_name', 'store_number', 'address1', 'address2',
    'city', 'state', 'zip_code', 'country', 'phone', 'ffl_number',
    'timezone', 'currency', 'status', 'is_active',
)


class StoreRepository:
    """Repository for stores; every query is scoped by company"""

    def find_all(
        self,
        company_id: int,
        status: Optional[str] = None,
        include_archived: bool = False
    ) -> List[Store]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["company_id = %s"]
            params = [company_id]

            if status:
                conditions.append("status = %s")
                params.append(status)
            elif not include_archived:
                conditions.append("status <> 'archived'")

            cursor.execute(f"""
                SELECT * FROM stores
                WHERE {" AND ".join(conditions)}
                ORDER BY store_number, name
            """, params)
            return [Store(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_all_admin(self, search: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
        """Stores across every company, with the company name and slug"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []
            if search:
                conditions.append("(s.name ILIKE %s OR c.name ILIKE %s)")
                params.extend([f"%{search}%", f"%{search}%"])
            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT s.*, c.name as company_name, c.slug as company_slug
                FROM stores s
                JOIN companies c ON c.id = s.company_id
                WHERE {where_clause}
                ORDER BY c.name, s.store_number
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, company_id: int, store_id: int) -> Optional[Store]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT * FROM stores WHERE company_id = %s AND id = %s",
                (company_id, store_id)
            )
            row = cursor.fetchone()
            return Store(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_store_numbers(self, company_id: int) -> List[str]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT store_number FROM stores WHERE company_id = %s", (company_id,))
            return [row['store_number'] for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_slugs(self, company_id: int, base_slug: str) -> List[str]:
        """Existing slugs equal to base_slug or base_slug-N"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT slug FROM stores
                WHERE company_id = %s AND (slug = %s OR slug LIKE %s)
            """, (company_id, base_slug, f"{base_slug}-%"))
            return [row['slug'] for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def create(self, company_id: int, fields: Dict[str, Any]) -> Store:
        columns, placeholders, params = build_insert(fields, STORE_COLUMNS)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO stores (company_id, {columns})
                VALUES (%s, {placeholders})
                RETURNING *
            """, [company_id] + params)
            row = cursor.fetchone()
            conn.commit()
            return Store(**row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, company_id: int, store_id: int, fields: Dict[str, Any]) -> Optional[Store]:
        set_clause, params = build_set_clause(fields, STORE_COLUMNS)
        if not set_clause:
            return self.find_by_id(company_id, store_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE stores
                SET {set_clause}, updated_at = NOW()
                WHERE company_id = %s AND id = %s
                RETURNING *
            """, params + [company_id, store_id])
            row = cursor.fetchone()
            conn.commit()
            return Store(**row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, company_id: int, store_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM stores WHERE company_id = %s AND id = %s RETURNING id",
                (company_id, store_id)
            )
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_users(self, store_id: int) -> List[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT u.id, u.email, u.name, u.role, u.is_active
                FROM user_stores us
                JOIN users u ON u.id = us.user_id
                WHERE us.store_id = %s
                ORDER BY u.name, u.email
            """, (store_id,))
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def assign_user(self, store_id: int, user_id: int) -> bool:
        """Returns False when the user was already assigned"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO user_stores (user_id, store_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, store_id) DO NOTHING
                RETURNING id
            """, (user_id, store_id))
            created = cursor.fetchone() is not None
            conn.commit()
            return created
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def remove_user(self, store_id: int, user_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM user_stores WHERE store_id = %s AND user_id = %s RETURNING id",
                (store_id, user_id)
            )
            removed = cursor.fetchone() is not None
            conn.commit()
            return removed
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
