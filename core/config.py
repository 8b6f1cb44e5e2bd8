"""
Runtime settings read from the environment (``.env`` supported via python-dotenv).
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def resolve_database_url(url: str | None) -> str:
    if not url:
        raise RuntimeError("DATABASE_URL must be set for Postgres usage")
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return url
    raise RuntimeError("DATABASE_URL must start with postgres:// or postgresql://")


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    # Frontend origin serving the /users/verify/{token} and /reset-password/{token}
    # pages; they post the token back to this API.
    public_base_url: str = "http://localhost:3000"
    jwt_access_ttl_minutes: int = 30
    jwt_refresh_ttl_days: int = 14
    token_ttl_minutes: int = 60
    bcrypt_rounds: int = 10

    @classmethod
    def from_env(cls, load_env: bool = True) -> "Settings":
        if load_env:
            # override=True so edits to `.env` take effect on restart.
            load_dotenv(override=True)

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET must be set")

        return cls(
            database_url=resolve_database_url(os.getenv("DATABASE_URL")),
            jwt_secret=jwt_secret,
            public_base_url=(os.getenv("PUBLIC_BASE_URL") or "http://localhost:3000").rstrip("/"),
            jwt_access_ttl_minutes=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "30")),
            jwt_refresh_ttl_days=int(os.getenv("JWT_REFRESH_TTL_DAYS", "14")),
            token_ttl_minutes=int(os.getenv("TOKEN_TTL_MINUTES", "60")),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
        )


__all__ = ["Settings", "resolve_database_url"]
