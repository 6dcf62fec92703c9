"""Error boundary: classify a caught error into the fallback shown to the user."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

import structlog

from shepherd_service.errors import (
    AppError,
    Forbidden,
    NotFound,
    Redirect,
    Unauthorized,
    decode_error,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SignInFallback:
    retry: bool = False


@dataclass(frozen=True)
class ForbiddenFallback:
    retry: bool = True


@dataclass(frozen=True)
class NotFoundFallback:
    retry: bool = False


@dataclass(frozen=True)
class NavigateFallback:
    url: str
    retry: bool = False


@dataclass(frozen=True)
class GenericFallback:
    message: str
    retry: bool = True


Fallback = Union[SignInFallback, ForbiddenFallback, NotFoundFallback, NavigateFallback, GenericFallback]


def classify(error: BaseException) -> Fallback:
    """Map an error to its fallback. Anything unrecognised is generic."""
    kind = decode_error(error.data) if isinstance(error, AppError) else None

    if isinstance(kind, Unauthorized):
        return SignInFallback()
    if isinstance(kind, Forbidden):
        return ForbiddenFallback()
    if isinstance(kind, NotFound):
        return NotFoundFallback()
    if isinstance(kind, Redirect):
        return NavigateFallback(url=kind.url)

    if isinstance(error, AppError):
        log.error("unrecognised_error_payload", data=error.data)
    return GenericFallback(message=str(error) or "An unexpected error occurred")


class ErrorBoundary:
    """Holds the currently caught error and its fallback.

    Recovery is always user-initiated: ``reset()`` runs the registered
    invalidation callbacks and clears the error state. Nothing is retried
    automatically.
    """

    def __init__(self, on_reset: Callable[[], None] | None = None) -> None:
        self._invalidators: list[Callable[[], None]] = []
        if on_reset is not None:
            self._invalidators.append(on_reset)
        self.error: BaseException | None = None
        self.fallback: Fallback | None = None

    def on_reset(self, callback: Callable[[], None]) -> None:
        self._invalidators.append(callback)

    def capture(self, error: BaseException) -> Fallback:
        log.error("error_caught_by_boundary", error=repr(error))
        self.error = error
        self.fallback = classify(error)
        return self.fallback

    def reset(self) -> None:
        self.error = None
        self.fallback = None
        for invalidate in self._invalidators:
            invalidate()
        log.info("error_boundary_reset")
