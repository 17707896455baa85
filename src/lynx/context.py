"""Request-scoped context.

Provides:
- ``request_var``: the current ``Request`` for this task.
- ``RequestContext``: the per-request bag carried as ``request.lynx``.

``RequestContext`` holds the matched route, the authenticated user,
the parsed body and files, and a free-form ``ctx`` dict that
middleware and verifiers fill and ``RenderResponse`` merges into the
template context. It lives exactly as long as the request.
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lynx.http.request import Request
    from lynx.routing.route import RouteDescriptor


@dataclass(slots=True)
class RequestContext:
    """Mutable per-request state shared across middleware and handlers."""

    route: RouteDescriptor | None = None
    user: Any = None
    body: Any = None
    files: dict[str, Any] = field(default_factory=dict)
    ctx: dict[str, Any] = field(default_factory=dict)
    lang: str | None = None

    @property
    def is_api(self) -> bool:
        """True when the matched route (if any) is an API route."""
        return self.route is not None and self.route.is_api


request_var: ContextVar[Request] = ContextVar("lynx_request")
"""The current request. Set by the ASGI handler before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` outside a request.
    """
    return request_var.get()


def current_request() -> Request | None:
    """Like ``get_request`` but returns ``None`` outside a request."""
    return request_var.get(None)
