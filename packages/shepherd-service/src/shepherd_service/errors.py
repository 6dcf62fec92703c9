"""Structured application errors.

Every authorization failure is raised as an ``AppError`` whose ``data`` is the
wire payload the client sees: either a bare code string (``"FORBIDDEN"``) or an
object (``{"code": "REDIRECT", "url": "/ob/no-church"}``). The payload is
decoded once, at the boundary, into one of the tagged variants below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    REDIRECT = "REDIRECT"


ErrorPayload = Union[str, dict[str, str]]


class AppError(Exception):
    """Application error carrying a structured payload."""

    def __init__(self, data: ErrorPayload) -> None:
        super().__init__(data if isinstance(data, str) else data.get("code", "ERROR"))
        self.data = data


def unauthorized() -> AppError:
    return AppError(ErrorCode.UNAUTHORIZED.value)


def forbidden() -> AppError:
    return AppError(ErrorCode.FORBIDDEN.value)


def not_found() -> AppError:
    return AppError(ErrorCode.NOT_FOUND.value)


def redirect(url: str) -> AppError:
    return AppError({"code": ErrorCode.REDIRECT.value, "url": url})


# ---------------------------------------------------------------------------
# Tagged variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unauthorized:
    message: str | None = None


@dataclass(frozen=True)
class Forbidden:
    message: str | None = None


@dataclass(frozen=True)
class NotFound:
    message: str | None = None


@dataclass(frozen=True)
class Redirect:
    url: str
    message: str | None = None


ErrorKind = Union[Unauthorized, Forbidden, NotFound, Redirect]


def _code_of(value: Any) -> ErrorCode | None:
    if not isinstance(value, str):
        return None
    try:
        return ErrorCode(value)
    except ValueError:
        return None


def _str_field(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def decode_error(data: Any) -> ErrorKind | None:
    """Decode a raw error payload into its variant.

    Returns None for anything that is not a recognised payload, including a
    REDIRECT without a non-empty url. Callers treat None as a generic failure.
    """
    if isinstance(data, str):
        code, url, message = _code_of(data), None, None
    elif isinstance(data, dict):
        code = _code_of(data.get("code"))
        url = _str_field(data, "url")
        message = _str_field(data, "message")
    else:
        return None

    if code is ErrorCode.UNAUTHORIZED:
        return Unauthorized(message)
    if code is ErrorCode.FORBIDDEN:
        return Forbidden(message)
    if code is ErrorCode.NOT_FOUND:
        return NotFound(message)
    if code is ErrorCode.REDIRECT and url:
        return Redirect(url, message)
    return None
