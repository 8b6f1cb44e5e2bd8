"""
User storage backed by the ``users`` table.

Every write that depends on a previously read state is conditioned on that
state in its WHERE clause, so two concurrent requests cannot both win. Methods
that can lose such a race return ``False`` (or ``None``) instead of raising.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from core.db.base import ConnectionFactory
from core.db.users.models import Role, User, user_from_row

_USER_COLUMNS = """
    id, name, email, password, role,
    email_token, email_token_expiry,
    reset_password_token, reset_password_expiry,
    refresh_token
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserStore:
    def __init__(self, get_conn: ConnectionFactory):
        self._get_conn = get_conn

    # ---- reads ----

    def _fetch_one(self, where: str, params: tuple) -> Optional[User]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}", params)
            row = cur.fetchone()
        finally:
            conn.close()
        return user_from_row(dict(row)) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self._fetch_one("id = ?", (user_id,))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._fetch_one("email = ?", (normalize_email(email),))

    def get_user_by_name_and_email(self, name: str, email: str) -> Optional[User]:
        return self._fetch_one("name = ? AND email = ?", (name, normalize_email(email)))

    def get_user_by_email_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        return self._fetch_one("email_token = ?", (token,))

    def get_user_by_reset_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        return self._fetch_one("reset_password_token = ?", (token,))

    # ---- writes ----

    def _execute(self, sql: str, params: tuple) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            count = cur.rowcount
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return count

    def create_pending_user(
        self,
        name: str,
        email: str,
        email_token: str,
        expires_at: datetime,
        role: Role = Role.STUDENT,
    ) -> Optional[User]:
        """
        Insert a user awaiting email verification.
        Returns None if another row already holds the email.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO users (name, email, password, role, email_token, email_token_expiry)
                VALUES (?, ?, '', ?, ?, ?)
                ON CONFLICT (email) DO NOTHING
                RETURNING {_USER_COLUMNS}
                """,
                (name, normalize_email(email), role.value, email_token, expires_at),
            )
            row = cur.fetchone()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return user_from_row(dict(row)) if row else None

    def delete_pending_user(self, user_id: int, email_token: str) -> bool:
        """Delete a pending user, only if it still holds ``email_token``."""
        return self._execute(
            "DELETE FROM users WHERE id = ? AND email_token = ?",
            (user_id, email_token),
        ) == 1

    def activate_user(self, user_id: int, email_token: str, password_hash: str) -> bool:
        """Pending -> active: set the password and clear the verification pair."""
        return self._execute(
            """
            UPDATE users
            SET password = ?, email_token = NULL, email_token_expiry = NULL
            WHERE id = ? AND email_token = ?
            """,
            (password_hash, user_id, email_token),
        ) == 1

    def start_session(self, user_id: int, refresh_token: str) -> bool:
        """Store a refresh token unless one is already set."""
        return self._execute(
            "UPDATE users SET refresh_token = ? WHERE id = ? AND refresh_token IS NULL",
            (refresh_token, user_id),
        ) == 1

    def end_session(self, user_id: int) -> bool:
        return self._execute(
            "UPDATE users SET refresh_token = NULL WHERE id = ?",
            (user_id,),
        ) == 1

    def set_reset_token(self, user_id: int, token: str, expires_at: datetime) -> bool:
        """Overwrite any previous reset request for an active user."""
        return self._execute(
            """
            UPDATE users
            SET reset_password_token = ?, reset_password_expiry = ?
            WHERE id = ? AND email_token IS NULL
            """,
            (token, expires_at, user_id),
        ) == 1

    def complete_password_reset(self, user_id: int, reset_token: str, password_hash: str) -> bool:
        return self._execute(
            """
            UPDATE users
            SET password = ?, reset_password_token = NULL, reset_password_expiry = NULL
            WHERE id = ? AND reset_password_token = ?
            """,
            (password_hash, user_id, reset_token),
        ) == 1

    def delete_expired_pending_users(self, now: datetime) -> int:
        return self._execute(
            "DELETE FROM users WHERE email_token IS NOT NULL AND email_token_expiry < ?",
            (now,),
        )


__all__ = ["UserStore", "normalize_email"]
