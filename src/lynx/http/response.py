"""Immutable wire response.

What the ASGI sender consumes and what pipeline middleware (sessions,
CORS, static files) transform with chainable ``.with_*()`` calls.
Handlers never build these directly; they write to a ``ResponseWriter``.
"""

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from lynx.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_cookie(self, cookie: SetCookie) -> Response:
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Return a new Response that deletes a cookie (Max-Age=0)."""
        return self.with_cookie(SetCookie(name=name, value="", max_age=0, path=path))

    def header(self, name: str) -> str | None:
        """First value of a response header (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        return json_module.loads(self.body_bytes)
