"""
Plan Settings Repository - Data Access Layer for the plan catalog

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any

from bestprice.domain.organization import PlanSettings
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

PLAN_COLUMNS = (
    'plan_name', 'trial_length_days', 'plan_length_days', 'max_users',
    'max_vendors', 'max_orders', 'online_ordering', 'asn_processing',
    'webhook_export', 'advanced_analytics', 'api_access', 'is_active',
    'sort_order',
)


class PlanSettingsRepository:

    def find_all(self, active_only: bool = False) -> List[PlanSettings]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "is_active = TRUE" if active_only else "1=1"
            cursor.execute(f"""
                SELECT * FROM plan_settings
                WHERE {where_clause}
                ORDER BY sort_order, plan_id
            """)
            return [PlanSettings(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_by_plan(self, plan: str) -> Optional[PlanSettings]:
        """Lookup by plan_id or plan_name, case-insensitive"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT * FROM plan_settings
                WHERE lower(plan_id) = lower(%s) OR lower(plan_name) = lower(%s)
                ORDER BY (lower(plan_id) = lower(%s)) DESC
                LIMIT 1
            """, (plan, plan, plan))
            row = cursor.fetchone()
            return PlanSettings(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def upsert(self, plan_id: str, fields: Dict[str, Any]) -> PlanSettings:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id FROM plan_settings WHERE plan_id = %s", (plan_id,))
            existing = cursor.fetchone()

            if existing:
                set_clause, params = build_set_clause(fields, PLAN_COLUMNS)
                if set_clause:
                    cursor.execute(f"""
                        UPDATE plan_settings
                        SET {set_clause}, updated_at = NOW()
                        WHERE id = %s
                        RETURNING *
                    """, params + [existing['id']])
                else:
                    cursor.execute("SELECT * FROM plan_settings WHERE id = %s", (existing['id'],))
            else:
                values = dict(fields)
                values.setdefault('plan_name', plan_id.title())
                columns, placeholders, params = build_insert(values, PLAN_COLUMNS)
                cursor.execute(f"""
                    INSERT INTO plan_settings (plan_id, {columns})
                    VALUES (%s, {placeholders})
                    RETURNING *
                """, [plan_id] + params)

            row = cursor.fetchone()
            conn.commit()
            return PlanSettings(**row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
