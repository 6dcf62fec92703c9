"""One-time code generation and hashing using bcrypt."""

from __future__ import annotations

import secrets

import bcrypt


def generate_code(length: int = 6) -> str:
    """Return a random numeric code of ``length`` digits."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_code(code: str) -> str:
    """Hash a one-time code with bcrypt. Returns a utf-8 string."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(code.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_code(code: str, hashed: str) -> bool:
    """Return True if code matches the stored bcrypt hash."""
    return bcrypt.checkpw(code.encode("utf-8"), hashed.encode("utf-8"))
