"""
User-related storage helpers, split by responsibility.
"""
from core.db.users.auth import hash_password, verify_password
from core.db.users.models import (
    Active,
    PendingVerification,
    ResetRequest,
    Role,
    User,
    user_from_row,
)
from core.db.users.user_store import UserStore, normalize_email

__all__ = [
    "hash_password",
    "verify_password",
    "Active",
    "PendingVerification",
    "ResetRequest",
    "Role",
    "User",
    "user_from_row",
    "UserStore",
    "normalize_email",
]
