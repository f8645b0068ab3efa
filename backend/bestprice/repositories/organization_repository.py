"""
Organization Repository - Data Access Layer for companies

Also owns the organization status audit log and the usage counters used by
plan enforcement.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any

from bestprice.domain.organization import Organization
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause

EDITABLE_COLUMNS = (
    'name', 'email', 'phone', 'address1', 'address2', 'city', 'state',
    'zip_code', 'country', 'settings', 'plan', 'max_users', 'max_vendors',
    'max_orders', 'billing_provider', 'billing_customer_id',
    'billing_subscription_id', 'trial_status', 'trial_ends_at',
)


class OrganizationRepository:
    """Repository for companies (organizations)"""

    def find_by_id(self, company_id: int) -> Optional[Organization]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM companies WHERE id = %s", (company_id,))
            row = cursor.fetchone()
            return Organization(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_by_slug(self, slug: str) -> Optional[Organization]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM companies WHERE slug = %s", (slug,))
            row = cursor.fetchone()
            return Organization(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        plan: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Organization], int]:
        """
        Organizations with user and store counts

        Returns:
            Tuple of (organizations, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("c.status = %s")
                params.append(status)

            if plan:
                conditions.append("c.plan = %s")
                params.append(plan)

            if search:
                conditions.append("(c.name ILIKE %s OR c.slug ILIKE %s OR c.email ILIKE %s)")
                search_param = f"%{search}%"
                params.extend([search_param, search_param, search_param])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"SELECT COUNT(*) as total FROM companies c WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT
                    c.*,
                    (SELECT COUNT(*) FROM users u WHERE u.company_id = c.id) as user_count,
                    (SELECT COUNT(*) FROM stores s WHERE s.company_id = c.id) as store_count
                FROM companies c
                WHERE {where_clause}
                ORDER BY c.created_at DESC, c.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [Organization(**row) for row in cursor.fetchall()], total
        finally:
            cursor.close()
            conn.close()

    def update(self, company_id: int, fields: Dict[str, Any]) -> Optional[Organization]:
        set_clause, params = build_set_clause(fields, EDITABLE_COLUMNS, json_columns=('settings',))
        if not set_clause:
            return self.find_by_id(company_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE companies
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, params + [company_id])
            row = cursor.fetchone()
            conn.commit()
            return Organization(**row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_status(
        self,
        company_id: int,
        new_status: str,
        reason: Optional[str] = None,
        changed_by: Optional[str] = None
    ) -> Optional[Organization]:
        """
        Change a company's status and write the audit row in one transaction
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT status FROM companies WHERE id = %s FOR UPDATE", (company_id,))
            current = cursor.fetchone()
            if not current:
                return None

            cursor.execute("""
                UPDATE companies
                SET status = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (new_status, company_id))
            row = cursor.fetchone()

            cursor.execute("""
                INSERT INTO organization_status_audit_log
                    (company_id, previous_status, new_status, reason, changed_by)
                VALUES (%s, %s, %s, %s, %s)
            """, (company_id, current['status'], new_status, reason, changed_by))

            conn.commit()
            return Organization(**row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_status_history(self, company_id: int) -> List[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, previous_status, new_status, reason, changed_by, created_at
                FROM organization_status_audit_log
                WHERE company_id = %s
                ORDER BY created_at DESC
            """, (company_id,))
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def extend_trial(self, company_id: int, days: int) -> Optional[Organization]:
        """Push trial_ends_at forward (from now if already past) and count the extension"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE companies
                SET trial_ends_at = GREATEST(COALESCE(trial_ends_at, NOW()), NOW()) + (%s * INTERVAL '1 day'),
                    trial_extensions = COALESCE(trial_extensions, 0) + 1,
                    trial_status = 'active',
                    updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (days, company_id))
            row = cursor.fetchone()
            conn.commit()
            return Organization(**row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def get_usage_counts(self, company_id: int) -> Dict[str, int]:
        """
        Current usage for plan enforcement

        Returns:
            {"users": active users, "vendors": enabled vendor credentials,
             "orders": orders created this calendar month}
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    (SELECT COUNT(*) FROM users
                     WHERE company_id = %s AND is_active = TRUE) as users,
                    (SELECT COUNT(*) FROM company_vendor_credentials
                     WHERE company_id = %s AND is_enabled = TRUE) as vendors,
                    (SELECT COUNT(*) FROM orders
                     WHERE company_id = %s
                       AND created_at >= date_trunc('month', NOW())) as orders
            """, (company_id, company_id, company_id))
            row = cursor.fetchone()
            return {
                'users': row['users'],
                'vendors': row['vendors'],
                'orders': row['orders'],
            }
        finally:
            cursor.close()
            conn.close()
