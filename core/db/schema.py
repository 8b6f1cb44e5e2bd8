"""
Schema helpers for Postgres.
"""
from __future__ import annotations

from core.db.base import ConnectionFactory


def init_db(get_conn: ConnectionFactory) -> None:
    """Create the users table if it doesn't exist."""
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users(
                id SERIAL PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL DEFAULT '',
                role TEXT NOT NULL DEFAULT 'student',
                email_token TEXT UNIQUE,
                email_token_expiry TIMESTAMPTZ,
                reset_password_token TEXT UNIQUE,
                reset_password_expiry TIMESTAMPTZ,
                refresh_token TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                CONSTRAINT users_email_token_pair CHECK (
                    (email_token IS NULL) = (email_token_expiry IS NULL)
                ),
                CONSTRAINT users_reset_token_pair CHECK (
                    (reset_password_token IS NULL) = (reset_password_expiry IS NULL)
                ),
                CONSTRAINT users_pending_or_active CHECK (
                    (email_token IS NOT NULL AND password = '')
                    OR (email_token IS NULL AND password <> '')
                )
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS users_email_token_expiry_idx ON users (email_token_expiry) "
            "WHERE email_token IS NOT NULL"
        )
        conn.commit()
    finally:
        conn.close()


__all__ = ["init_db"]
