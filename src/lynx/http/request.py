"""Immutable HTTP request.

Frozen metadata with async body access. Per-request mutable state
(matched route, user, parsed body, context bag) lives in ``request.lynx``.
"""

import json
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from lynx._internal.asgi import Receive, Scope
from lynx.context import RequestContext
from lynx.errors import HTTPError
from lynx.http.cookies import parse_cookies
from lynx.http.datastructures import Headers, QueryParams, parse_accept_language
from lynx.http.forms import FormData, is_form_content_type, parse_form_data


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path_params`` is replaced per matched route with ``with_params``;
    the body cache and ``lynx`` context are shared by every copy.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    client: tuple[str, int] | None = None
    path_params: dict[str, str] = field(default_factory=dict)
    app: Any = field(default=None, repr=False, compare=False)
    lynx: RequestContext = field(default_factory=RequestContext, repr=False, compare=False)

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    @property
    def user(self) -> Any:
        """The authenticated user, or ``None``."""
        return self.lynx.user

    @property
    def is_json(self) -> bool:
        return "json" in (self.content_type or "")

    def accepts_languages(self) -> list[str]:
        """Languages the client accepts, best first."""
        return parse_accept_language(self.headers.get("accept-language"))

    def with_params(self, path_params: dict[str, str]) -> Request:
        """Copy sharing the body cache and ``lynx`` context."""
        return replace(self, path_params=path_params)

    # -- Async body access --

    @property
    def body_limit(self) -> int | None:
        """Maximum body size in bytes, ``None`` when no app is attached."""
        config = getattr(self.app, "config", None)
        if config is None:
            return None
        return config.json_limit if self.is_json else config.max_content_length

    async def body(self) -> bytes:
        """Read the full body once; later calls return the cached bytes.

        Raises:
            HTTPError: 413 when the body (declared or received) is larger
                than ``body_limit``.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        limit = self.body_limit
        declared = self.headers.get("content-length", "")
        if limit is not None and declared.isdigit() and int(declared) > limit:
            raise _too_large(limit)
        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if limit is not None and size > limit:
                raise _too_large(limit)
            chunks.append(chunk)
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as a form (cached)."""
        if "_form" not in self._cache:
            raw = await self.body()
            ct = self.content_type or "application/x-www-form-urlencoded"
            self._cache["_form"] = parse_form_data(raw, ct)
        return self._cache["_form"]

    async def parsed_body(self) -> Any:
        """Decode the body by content type and store it on ``request.lynx``.

        JSON bodies decode as-is, forms become plain dicts (uploads go to
        ``request.lynx.files``), anything else yields an empty dict.
        """
        if "_parsed" in self._cache:
            return self._cache["_parsed"]
        result: Any = {}
        if self.is_json:
            raw = await self.body()
            if raw.strip():
                result = await self.json()
        elif is_form_content_type(self.content_type):
            form = await self.form()
            result = form.to_dict()
            self.lynx.files.update(form.files)
        self._cache["_parsed"] = result
        self.lynx.body = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive, *, app: Any = None) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            client=tuple(client) if client else None,
            app=app,
            _receive=receive,
        )


def _too_large(limit: int) -> HTTPError:
    return HTTPError(status=413, detail=f"Request body exceeds {limit} bytes")
