"""
Error kinds raised by the credential lifecycle.

Each ``AuthError`` carries a stable ``kind`` tag and the HTTP status the API
layer should answer with. Messages are safe to show to the caller.
"""
from __future__ import annotations


class AuthError(Exception):
    kind = "auth_error"
    status_code = 400
    message = "Request could not be completed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class DuplicatePendingRegistration(AuthError):
    kind = "duplicate_pending_registration"
    message = "Please complete email verification first."


class EmailAlreadyRegistered(AuthError):
    kind = "email_already_registered"
    message = "This email is already registered."


class InvalidToken(AuthError):
    kind = "invalid_token"
    message = "Token is invalid."


class TokenExpired(AuthError):
    kind = "token_expired"
    message = "Token has expired."


class VerificationExpired(AuthError):
    kind = "verification_expired"
    message = "Email verification has expired. Please register again."


class UserNotFound(AuthError):
    kind = "user_not_found"
    message = "User not found."


class EmailNotVerified(AuthError):
    kind = "email_not_verified"
    message = "Please verify your email first."


class InvalidCredentials(AuthError):
    kind = "invalid_credentials"
    message = "Incorrect password."


class SessionAlreadyActive(AuthError):
    kind = "session_already_active"
    message = "Already logged in."


class InvalidPassword(AuthError):
    kind = "invalid_password"
    message = "Password is too long (at most 72 bytes)."


class ServerError(AuthError):
    kind = "server_error"
    status_code = 500
    message = "A server error occurred."


class InconsistentRecord(RuntimeError):
    """A stored user row has a token without its expiry (or vice versa)."""


__all__ = [
    "AuthError",
    "DuplicatePendingRegistration",
    "EmailAlreadyRegistered",
    "InvalidToken",
    "TokenExpired",
    "VerificationExpired",
    "UserNotFound",
    "EmailNotVerified",
    "InvalidCredentials",
    "SessionAlreadyActive",
    "InvalidPassword",
    "ServerError",
    "InconsistentRecord",
]
