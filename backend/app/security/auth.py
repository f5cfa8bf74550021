"""Scheduler authentication for the bot trigger endpoints.

Design:
- A shared bearer token (AP_BOT_TOKEN) provisioned out-of-band in the
  scheduler job definition.
- When the token is unset the endpoints are open (local development only).
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from typing import Optional

from fastapi import HTTPException, Request, status


BOT_TOKEN_ENV = "AP_BOT_TOKEN"


class AuthError(HTTPException):
    pass


def token_fingerprint(token: str) -> str:
    """Non-reversible token fingerprint for audit logs."""
    raw = hashlib.sha256(token.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(raw[:18]).decode("ascii").rstrip("=")


def _bearer(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def require_scheduler_token(request: Request) -> Optional[str]:
    """FastAPI dependency; returns the caller's token fingerprint (if any)."""
    expected = os.environ.get(BOT_TOKEN_ENV)
    if not expected:
        return None
    token = _bearer(request)
    if token is None:
        raise AuthError(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token.")
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid bearer token.")
    return token_fingerprint(token)
