"""
User Repository - organization users and platform admins

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any

from bestprice.core.database import get_db_connection_dict

PUBLIC_COLUMNS = "id, company_id, email, name, role, is_active, last_login_at, created_at, updated_at"


class UserRepository:

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Includes password_hash and the company slug; for login only"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT u.*, c.slug as company_slug
                FROM users u
                LEFT JOIN companies c ON c.id = u.company_id
                WHERE lower(u.email) = lower(%s)
            """, (email,))
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, company_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PUBLIC_COLUMNS} FROM users
                WHERE company_id = %s AND id = %s
            """, (company_id, user_id))
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_all(self, company_id: int) -> List[Dict[str, Any]]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PUBLIC_COLUMNS} FROM users
                WHERE company_id = %s
                ORDER BY name, email
            """, (company_id,))
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def create(self, company_id: Optional[int], email: str, name: Optional[str],
               password_hash: str, role: str) -> Dict[str, Any]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO users (company_id, email, name, password_hash, role)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {PUBLIC_COLUMNS}
            """, (company_id, email, name, password_hash, role))
            row = cursor.fetchone()
            conn.commit()
            return dict(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def touch_login(self, user_id: int):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("UPDATE users SET last_login_at = NOW() WHERE id = %s", (user_id,))
            conn.commit()
        finally:
            cursor.close()
            conn.close()
