"""
Admin Settings Repository - Data Access Layer for the single-row admin_settings table

Author: TM3
Date: 2025-10-17
"""
from typing import Optional, Dict, Any

from bestprice.domain.settings import AdminSettings
from bestprice.core.database import get_db_connection_dict
from bestprice.repositories.base import build_set_clause, build_insert

SETTINGS_COLUMNS = tuple(
    name for name in AdminSettings.model_fields if name not in ("id", "updated_at")
)


class AdminSettingsRepository:
    """Repository for platform admin settings"""

    def get(self) -> Optional[AdminSettings]:
        """Return the settings row, or None when it was never saved"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM admin_settings ORDER BY id LIMIT 1")
            row = cursor.fetchone()
            return AdminSettings(**row) if row else None
        finally:
            cursor.close()
            conn.close()

    def upsert(self, fields: Dict[str, Any]) -> AdminSettings:
        """
        Update the settings row with the given fields, creating it when missing

        Args:
            fields: Partial settings, unknown keys are ignored
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id FROM admin_settings ORDER BY id LIMIT 1")
            existing = cursor.fetchone()

            if existing:
                set_clause, params = build_set_clause(fields, SETTINGS_COLUMNS)
                if set_clause:
                    cursor.execute(f"""
                        UPDATE admin_settings
                        SET {set_clause}, updated_at = NOW()
                        WHERE id = %s
                        RETURNING *
                    """, params + [existing['id']])
                else:
                    cursor.execute("SELECT * FROM admin_settings WHERE id = %s", (existing['id'],))
            else:
                columns, placeholders, params = build_insert(fields, SETTINGS_COLUMNS)
                if columns:
                    cursor.execute(f"""
                        INSERT INTO admin_settings ({columns}, updated_at)
                        VALUES ({placeholders}, NOW())
                        RETURNING *
                    """, params)
                else:
                    cursor.execute("INSERT INTO admin_settings (updated_at) VALUES (NOW()) RETURNING *")

            row = cursor.fetchone()
            conn.commit()
            return AdminSettings(**row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
