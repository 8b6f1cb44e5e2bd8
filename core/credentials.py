"""
Credential and token lifecycle: registration with email verification, login,
logout and the password reset flow.

Each public method is one read-check-write against a single user row. Checks
fail fast with a specific ``AuthError``; anything unexpected coming out of the
store, the hasher or the mailer is logged and surfaced as ``ServerError``.
"""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from core.db.users.auth import DEFAULT_ROUNDS, hash_password, password_fits, verify_password
from core.db.users.models import Active, Role, User
from core.errors import (
    AuthError,
    DuplicatePendingRegistration,
    EmailAlreadyRegistered,
    EmailNotVerified,
    InvalidCredentials,
    InvalidPassword,
    InvalidToken,
    ServerError,
    SessionAlreadyActive,
    TokenExpired,
    UserNotFound,
    VerificationExpired,
)
from core.tokens import TokenIssuer, TokenPair, generate_token, utcnow

log = logging.getLogger("credentials")

EmailSender = Callable[[str, str, str], None]

TOKEN_TTL = timedelta(hours=1)


class UserRepository(Protocol):
    """Storage the manager needs; writes return False when their condition no longer holds."""

    def get_user_by_email(self, email: str) -> Optional[User]: ...

    def get_user_by_name_and_email(self, name: str, email: str) -> Optional[User]: ...

    def get_user_by_email_token(self, token: str) -> Optional[User]: ...

    def get_user_by_reset_token(self, token: str) -> Optional[User]: ...

    def create_pending_user(
        self, name: str, email: str, email_token: str, expires_at: datetime, role: Role = Role.STUDENT
    ) -> Optional[User]: ...

    def delete_pending_user(self, user_id: int, email_token: str) -> bool: ...

    def activate_user(self, user_id: int, email_token: str, password_hash: str) -> bool: ...

    def start_session(self, user_id: int, refresh_token: str) -> bool: ...

    def end_session(self, user_id: int) -> bool: ...

    def set_reset_token(self, user_id: int, token: str, expires_at: datetime) -> bool: ...

    def complete_password_reset(self, user_id: int, reset_token: str, password_hash: str) -> bool: ...

    def delete_expired_pending_users(self, now: datetime) -> int: ...


@dataclass
class CredentialConfig:
    store: UserRepository
    send_email: EmailSender
    issuer: TokenIssuer
    public_base_url: str  # frontend origin for emailed links
    token_ttl: timedelta = TOKEN_TTL
    bcrypt_rounds: int = DEFAULT_ROUNDS
    clock: Callable[[], datetime] = field(default=utcnow)


def _operation(func):
    """Let AuthErrors through; downgrade anything else to ServerError."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except AuthError:
            raise
        except Exception as exc:
            log.exception("%s failed", func.__name__)
            raise ServerError() from exc

    return wrapper


class CredentialManager:
    def __init__(self, config: CredentialConfig):
        self._store = config.store
        self._send_email = config.send_email
        self._issuer = config.issuer
        self._base_url = config.public_base_url.rstrip("/")
        self._token_ttl = config.token_ttl
        self._rounds = config.bcrypt_rounds
        self._clock = config.clock

    def _new_token(self) -> tuple[str, datetime]:
        return generate_token(), self._clock() + self._token_ttl

    def _hash(self, password: str) -> str:
        if not password_fits(password):
            raise InvalidPassword()
        return hash_password(password, rounds=self._rounds)

    @_operation
    def register(self, name: str, email: str) -> str:
        existing = self._store.get_user_by_email(email)
        if existing:
            if not existing.is_pending:
                raise EmailAlreadyRegistered()
            if not existing.state.is_expired(self._clock()):
                raise DuplicatePendingRegistration()
            # Stale registration: drop it and start over.
            self._store.delete_pending_user(existing.id, existing.state.token)
            log.info("Removed expired pending registration", extra={"user_id": existing.id})

        token, expires_at = self._new_token()
        user = self._store.create_pending_user(name, email, token, expires_at, role=Role.STUDENT)
        if user is None:
            # Another request registered this email between our read and insert.
            raise DuplicatePendingRegistration()
        log.info("Created pending registration", extra={"user_id": user.id})

        link = f"{self._base_url}/users/verify/{token}"
        try:
            self._send_email(
                user.email,
                "Verify your email",
                f"Click the link below to verify your email:\n\n{link}\n\nThis link expires in 1 hour.",
            )
        except Exception:
            # The pending row stays; it is reclaimed after expiry by the next
            # registration for this email or by purge_expired_registrations().
            log.warning("Verification email failed; pending registration left in place", extra={"user_id": user.id})
            raise
        return "A verification link has been sent to your email."

    @_operation
    def verify_email(self, email_token: str, password: str) -> str:
        user = self._store.get_user_by_email_token(email_token)
        if not user or not user.is_pending:
            raise InvalidToken()
        if user.state.is_expired(self._clock()):
            raise TokenExpired()

        password_hash = self._hash(password)
        if not self._store.activate_user(user.id, email_token, password_hash):
            raise InvalidToken()
        log.info("Email verified", extra={"user_id": user.id})
        return "Registration complete."

    @_operation
    def login(self, email: str, password: str) -> TokenPair:
        user = self._store.get_user_by_email(email)
        if not user:
            raise UserNotFound()

        # Still-pending is checked before expired-pending.
        if user.is_pending:
            if not user.state.is_expired(self._clock()):
                raise EmailNotVerified()
            raise VerificationExpired()

        if not verify_password(password, user.state.password_hash):
            raise InvalidCredentials()
        if user.has_session:
            raise SessionAlreadyActive()

        tokens = TokenPair(
            access_token=self._issuer.issue_access_token(user.id),
            refresh_token=self._issuer.issue_refresh_token(user.id),
        )
        if not self._store.start_session(user.id, tokens.refresh_token):
            raise SessionAlreadyActive()
        log.info("Login succeeded", extra={"user_id": user.id})
        return tokens

    @_operation
    def logout(self, user_id: int) -> str:
        if not self._store.end_session(user_id):
            raise UserNotFound()
        log.info("Logged out", extra={"user_id": user_id})
        return "Logged out."

    @_operation
    def find_password(self, name: str, email: str) -> str:
        user = self._store.get_user_by_name_and_email(name, email)
        if not user:
            raise UserNotFound()
        if not isinstance(user.state, Active):
            raise EmailNotVerified()

        token, expires_at = self._new_token()
        if not self._store.set_reset_token(user.id, token, expires_at):
            raise UserNotFound()

        link = f"{self._base_url}/reset-password/{token}"
        try:
            self._send_email(
                user.email,
                "Reset your password",
                f"Click the link below to reset your password:\n\n{link}\n\n"
                "If you did not request this, ignore the email.",
            )
        except Exception:
            log.warning("Reset email failed; reset token already stored", extra={"user_id": user.id})
            raise
        log.info("Password reset requested", extra={"user_id": user.id})
        return "A password reset link has been sent to your email."

    @_operation
    def reset_password(self, reset_token: str, new_password: str) -> str:
        user = self._store.get_user_by_reset_token(reset_token)
        if not user or user.reset is None:
            raise InvalidToken()
        if user.reset.is_expired(self._clock()):
            raise TokenExpired()

        password_hash = self._hash(new_password)
        if not self._store.complete_password_reset(user.id, reset_token, password_hash):
            raise InvalidToken()
        log.info("Password reset completed", extra={"user_id": user.id})
        return "Your password has been reset."

    @_operation
    def purge_expired_registrations(self) -> int:
        removed = self._store.delete_expired_pending_users(self._clock())
        if removed:
            log.info("Purged expired registrations", extra={"count": removed})
        return removed


__all__ = ["CredentialConfig", "CredentialManager", "EmailSender", "TOKEN_TTL", "UserRepository"]
