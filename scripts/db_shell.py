"""
Run a query against the users database (DATABASE_URL required).

Usage:
  python scripts/db_shell.py                                   # list users
  python scripts/db_shell.py "SELECT count(*) FROM users"      # run a custom query
"""
from __future__ import annotations

import os
import sys

import psycopg
from dotenv import load_dotenv
from psycopg.rows import dict_row

from core.config import resolve_database_url

DEFAULT_QUERY = (
    "SELECT id, name, email, role, "
    "email_token IS NOT NULL AS pending, "
    "reset_password_token IS NOT NULL AS reset_requested, "
    "refresh_token IS NOT NULL AS logged_in "
    "FROM users ORDER BY id"
)


def main() -> None:
    load_dotenv(override=True)
    try:
        database_url = resolve_database_url(os.getenv("DATABASE_URL"))
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    query = " ".join(sys.argv[1:]).strip() or DEFAULT_QUERY
    try:
        with psycopg.connect(database_url, row_factory=dict_row) as conn:
            cur = conn.cursor()
            cur.execute(query)
            if cur.description is not None:
                for row in cur.fetchall():
                    print(dict(row))
            else:
                conn.commit()
                print(f"OK ({cur.rowcount} row(s) affected)")
    except psycopg.Error as exc:
        raise SystemExit(f"Error running query: {exc}") from exc


if __name__ == "__main__":
    main()
