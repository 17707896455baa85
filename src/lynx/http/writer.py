"""Mutable response writer — the ``res`` handed to controllers.

Controller methods, middleware ``apply`` and response variants write
to it; once the layer stack is done the handler freezes it into a wire
``Response`` with ``to_response()``. Writing a body twice is an error.
"""

import json as json_module
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio

from lynx.http.cookies import SetCookie
from lynx.http.response import Response

if TYPE_CHECKING:
    from kida import Environment


class ResponseWriter:
    """Accumulates status, headers and body for one request."""

    __slots__ = ("_body", "_cookies", "_env", "_headers", "content_type", "headers_sent", "status")

    def __init__(self, env: Environment | None = None) -> None:
        self.status: int = 200
        self.content_type: str = "text/html; charset=utf-8"
        self.headers_sent: bool = False
        self._headers: list[tuple[str, str]] = []
        self._cookies: list[SetCookie] = []
        self._body: bytes = b""
        self._env = env

    # -- Status and headers --

    def set_status(self, status: int) -> ResponseWriter:
        self._check_not_sent()
        self.status = status
        return self

    def set_header(self, name: str, value: str) -> ResponseWriter:
        """Set a header, replacing earlier values with the same name."""
        self._check_not_sent()
        if name.lower() == "content-type":
            self.content_type = value
            return self
        lowered = name.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((name, value))
        return self

    def append_header(self, name: str, value: str) -> ResponseWriter:
        self._check_not_sent()
        self._headers.append((name, value))
        return self

    def get_header(self, name: str) -> str | None:
        lowered = name.lower()
        if lowered == "content-type":
            return self.content_type
        for key, value in reversed(self._headers):
            if key.lower() == lowered:
                return value
        return None

    def set_cookie(self, cookie: SetCookie) -> ResponseWriter:
        self._check_not_sent()
        self._cookies.append(cookie)
        return self

    # -- Body --

    def send(self, body: Any = b"") -> None:
        """Write the body and finish the response.

        ``str`` and ``bytes`` go out as-is; mappings and lists are sent
        as JSON; ``None`` sends an empty body.
        """
        match body:
            case None:
                payload = b""
            case str():
                payload = body.encode("utf-8")
            case bytes() | bytearray():
                payload = bytes(body)
                if self.get_header("content-type") == "text/html; charset=utf-8":
                    self.content_type = "application/octet-stream"
            case dict() | list() | tuple() | int() | float() | bool():
                self.json(body)
                return
            case _:
                payload = str(body).encode("utf-8")
        self._finish(payload)

    def json(self, value: Any) -> None:
        self.content_type = "application/json"
        self._finish(json_module.dumps(value, default=str).encode("utf-8"))

    def redirect(self, url: str, status: int = 302) -> None:
        self.status = status
        self.set_header("Location", url)
        self._finish(b"")

    def render(self, view: str, context: dict[str, Any]) -> None:
        """Render a kida template and send it."""
        if self._env is None:
            msg = "No template environment configured; cannot render views."
            raise RuntimeError(msg)
        template = self._env.get_template(view)
        self._finish(template.render(context).encode("utf-8"))

    async def send_file(self, path: str | Path, content_type: str | None = None) -> None:
        """Read a file off the event loop and send it.

        Raises ``FileNotFoundError`` if *path* is not a regular file.
        """
        apath = anyio.Path(path)
        if not await apath.is_file():
            raise FileNotFoundError(str(path))
        data = await apath.read_bytes()
        if content_type is None:
            content_type, _ = mimetypes.guess_type(str(path))
        self.content_type = content_type or "application/octet-stream"
        self._finish(data)

    def end(self) -> None:
        """Finish with whatever body was written (possibly empty)."""
        self._finish(self._body)

    # -- Output --

    def to_response(self) -> Response:
        return Response(
            body=self._body,
            status=self.status,
            content_type=self.content_type,
            headers=tuple(self._headers),
            cookies=tuple(self._cookies),
        )

    def _finish(self, payload: bytes) -> None:
        self._check_not_sent()
        self._body = payload
        self.headers_sent = True

    def _check_not_sent(self) -> None:
        if self.headers_sent:
            msg = "Cannot modify a response after it has been sent."
            raise RuntimeError(msg)
