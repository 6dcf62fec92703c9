"""Session token creation and verification."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import jwt

from shepherd_service.settings import settings


def _now_utc() -> datetime:
    return datetime.now(UTC)


def create_session_token(user_id: UUID, session_id: UUID, expires_at: datetime) -> str:
    """Create a signed JWT bound to a stored session row."""
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": _now_utc(),
        "exp": expires_at,
        "type": "session",
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])


def bearer_token(headers) -> str | None:
    """Extract the bearer token from request headers, if any."""
    auth_header = headers.get("authorization") or headers.get("Authorization") or ""
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header.removeprefix("Bearer ").strip()
    return token or None
