"""
Helpers for bearer-token lookup on incoming requests.
"""
from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import Request

log = logging.getLogger("auth")

BEARER_PREFIX = "bearer "


def get_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def get_current_user_id(request: Request) -> Optional[int]:
    """
    Return the user id carried by a valid access token, or None.
    """
    token = get_bearer_token(request)
    if not token:
        return None
    try:
        return request.app.state.token_issuer.decode(token, expected_type="access")
    except jwt.InvalidTokenError as exc:
        log.info("Rejected access token: %s", exc)
        return None


def client_ip(request: Request) -> str:
    return request.client.host if request and request.client else "unknown"
