"""
User record types.

A user is either waiting for email verification or active; an active user may
additionally have a password reset in flight. Each state carries its own token
and expiry so a token can never exist without its expiry.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from core.errors import InconsistentRecord


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


@dataclass(frozen=True)
class PendingVerification:
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class Active:
    password_hash: str


@dataclass(frozen=True)
class ResetRequest:
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


AccountState = Union[PendingVerification, Active]


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    role: Role
    state: AccountState
    reset: Optional[ResetRequest] = None
    refresh_token: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.state, PendingVerification)

    @property
    def has_session(self) -> bool:
        return bool(self.refresh_token)


def _pair(row: dict, token_key: str, expiry_key: str, user_id) -> tuple[Optional[str], Optional[datetime]]:
    token = row.get(token_key)
    expiry = row.get(expiry_key)
    if (token is None) != (expiry is None):
        raise InconsistentRecord(f"user {user_id}: {token_key} and {expiry_key} must be set together")
    return token, expiry


def user_from_row(row: dict) -> User:
    """Build a ``User`` from a ``users`` table row (dict)."""
    user_id = row["id"]
    email_token, email_expiry = _pair(row, "email_token", "email_token_expiry", user_id)
    reset_token, reset_expiry = _pair(row, "reset_password_token", "reset_password_expiry", user_id)
    password = row.get("password") or ""

    if email_token is not None:
        if password:
            raise InconsistentRecord(f"user {user_id}: pending verification but password is set")
        state: AccountState = PendingVerification(email_token, email_expiry)
    elif password:
        state = Active(password)
    else:
        raise InconsistentRecord(f"user {user_id}: neither pending nor active")

    reset = None
    if reset_token is not None:
        if not isinstance(state, Active):
            raise InconsistentRecord(f"user {user_id}: reset requested before verification")
        reset = ResetRequest(reset_token, reset_expiry)

    return User(
        id=int(user_id),
        name=row["name"],
        email=row["email"],
        role=Role(row.get("role") or Role.STUDENT.value),
        state=state,
        reset=reset,
        refresh_token=row.get("refresh_token"),
    )


__all__ = [
    "Role",
    "PendingVerification",
    "Active",
    "ResetRequest",
    "AccountState",
    "User",
    "user_from_row",
]
