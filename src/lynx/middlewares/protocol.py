"""Pipeline middleware protocol.

Pipeline middleware wraps the whole layer stack::

    async def timing(request: Request, next: Next) -> Response:
        start = time.monotonic()
        response = await next(request)
        return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")

It sees the finished wire ``Response``, which makes it the right place
for cookies (sessions), CORS headers and static files. Route-scoped
logic belongs in a ``BaseMiddleware`` subclass instead.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from lynx.http.request import Request
from lynx.http.response import Response

type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    async def __call__(self, request: Request, next: Next) -> Response: ...
