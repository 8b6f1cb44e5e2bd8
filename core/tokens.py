"""
Single-use link tokens and JWT access/refresh tokens.
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

TOKEN_BYTES = 32
JWT_ALGORITHM = "HS256"


def generate_token() -> str:
    """32 random bytes, hex encoded (64 characters)."""
    return secrets.token_hex(TOKEN_BYTES)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """Issues and decodes HS256 JWTs keyed by user id."""

    def __init__(
        self,
        secret: str,
        access_ttl: timedelta = timedelta(minutes=30),
        refresh_ttl: timedelta = timedelta(days=14),
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    def _encode(self, user_id: int, token_type: str, ttl: timedelta) -> str:
        now = utcnow()
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            # Distinct tokens even when issued within the same second.
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def issue_access_token(self, user_id: int) -> str:
        return self._encode(user_id, "access", self._access_ttl)

    def issue_refresh_token(self, user_id: int) -> str:
        return self._encode(user_id, "refresh", self._refresh_ttl)

    def decode(self, token: str, expected_type: str = "access") -> int:
        """
        Return the user id from a valid token of ``expected_type``.
        Raises ``jwt.InvalidTokenError`` otherwise.
        """
        payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        if payload.get("type") != expected_type:
            raise jwt.InvalidTokenError(f"expected {expected_type} token")
        return int(payload["sub"])


__all__ = ["TOKEN_BYTES", "TokenIssuer", "TokenPair", "generate_token", "utcnow"]
