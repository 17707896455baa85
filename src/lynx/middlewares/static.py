"""Static file serving for public folders.

Serves GET/HEAD requests whose path names an existing file under the
folder; everything else falls through. Paths are resolved and checked
against the folder to prevent traversal.
"""

import mimetypes
from pathlib import Path

import anyio

from lynx.http.request import Request
from lynx.http.response import Response
from lynx.middlewares.protocol import Next


class StaticFiles:
    """Serve files from *directory* under *prefix*.

    Usage::

        app.add_middleware(StaticFiles("./public"))
        app.add_middleware(StaticFiles("./assets", prefix="/assets"))
    """

    __slots__ = ("_cache_control", "_directory", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._cache_control = cache_control
        stripped = "/" + prefix.strip("/")
        self._prefix = "" if stripped == "/" else stripped

    def _relative(self, path: str) -> str | None:
        if not self._prefix:
            return path.lstrip("/")
        if path != self._prefix and not path.startswith(self._prefix + "/"):
            return None
        return path[len(self._prefix) :].lstrip("/")

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await next(request)
        relative = self._relative(request.path)
        if not relative:
            return await next(request)

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403, content_type="text/plain; charset=utf-8")
        if not await anyio.Path(file_path).is_file():
            return await next(request)

        content_type, _ = mimetypes.guess_type(str(file_path))
        body = await anyio.Path(file_path).read_bytes()
        return Response(
            body=body,
            content_type=content_type or "application/octet-stream",
        ).with_header("Cache-Control", self._cache_control)
