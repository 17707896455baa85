"""Lynx exception hierarchy.

Shared by the loader, the dispatcher, controllers and middleware so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class LynxError(Exception):
    """Base for all lynx-specific errors."""


class ConfigurationError(LynxError):
    """Raised when the application cannot be assembled.

    Missing controller classes, a controller without ``@route`` or a
    middleware without ``@middleware`` all abort startup with this.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(LynxError):
    """An error that carries its own HTTP status.

    Raise it from a controller method to pick the status the client
    receives. API routes turn it into ``{"success": false, "error": detail}``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        return self.detail or str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — nothing answered the request."""

    def __init__(self, detail: str = "not found") -> None:
        super().__init__(status=404, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401 — the client must authenticate first."""

    def __init__(self, detail: str = "unauthorized") -> None:
        super().__init__(status=401, detail=detail)


def error(status: int, message: str) -> HTTPError:
    """Build a status-carrying error, ready to be raised."""
    return HTTPError(status=status, detail=message)


def status_of(exc: BaseException, default: int = 400) -> int:
    """Return the HTTP status an exception carries, or *default*.

    Honours ``status`` (``HTTPError``) and ``status_code`` (the
    convention used by most third-party HTTP exceptions).
    """
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return default


def message_of(exc: BaseException) -> str:
    """Human-readable message for an error envelope."""
    if isinstance(exc, HTTPError):
        return exc.detail or str(exc.status)
    return str(exc) or type(exc).__name__
