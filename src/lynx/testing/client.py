"""Async test client for lynx applications.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

import inspect
import json as json_module
from typing import Any
from urllib.parse import urlencode

from lynx.app import App
from lynx.http.response import Response


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for lynx applications.

    Returns the same ``Response`` type used in production. Sends requests
    through the ASGI interface directly — no HTTP involved. Cookies set
    by responses are kept and sent back, like a browser would.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __slots__ = ("app", "cookies")

    def __init__(self, app: App) -> None:
        self.app = app
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        for hook in self.app._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.app._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> Response:
        """Send a GET request."""
        if query:
            path = f"{path}{'&' if '?' in path else '?'}{urlencode(query)}"
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
        data: dict[str, str] | None = None,
    ) -> Response:
        """Send a POST request (``json=`` or urlencoded ``data=``)."""
        return await self._send_with_body("POST", path, headers=headers, body=body, json=json, data=data)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """Send a PUT request."""
        return await self._send_with_body("PUT", path, headers=headers, body=body, json=json)

    async def patch(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """Send a PATCH request."""
        return await self._send_with_body("PATCH", path, headers=headers, body=body, json=json)

    async def delete(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Send a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    async def _send_with_body(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None,
        body: bytes | None,
        json: Any = None,
        data: dict[str, str] | None = None,
    ) -> Response:
        extra_headers: dict[str, str] = {}
        request_body = body or b""
        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"
        elif data is not None:
            request_body = urlencode(data).encode("utf-8")
            extra_headers["content-type"] = "application/x-www-form-urlencoded"
        merged = {**extra_headers, **(headers or {})}
        return await self.request(method, path, headers=merged, body=request_body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part = path
            query_string = ""

        merged = dict(headers or {})
        if self.cookies and not any(k.lower() == "cookie" for k in merged):
            merged["cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())

        raw_headers: list[tuple[bytes, bytes]] = []
        for name, value in merged.items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str != "content-length":
                extra_headers.append((name_str, value_str))
            if name_str == "set-cookie":
                self._store_cookie(value_str)

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    def _store_cookie(self, header: str) -> None:
        pair, *attributes = header.split(";")
        name, _, value = pair.strip().partition("=")
        expired = any(attr.strip().lower() == "max-age=0" for attr in attributes)
        if expired or not value:
            self.cookies.pop(name, None)
        else:
            self.cookies[name] = value
