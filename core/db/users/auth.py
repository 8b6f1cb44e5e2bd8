"""
Password hashing and verification.
"""
from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10
# bcrypt only accepts this many bytes of input
MAX_PASSWORD_BYTES = 72


def password_fits(raw_password: str) -> bool:
    return len(raw_password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(raw_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(raw_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(raw_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


__all__ = ["DEFAULT_ROUNDS", "MAX_PASSWORD_BYTES", "hash_password", "password_fits", "verify_password"]
