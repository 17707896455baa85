"""CORS for API paths.

Adds ``Access-Control-Allow-*`` headers to responses under *prefix*
and answers preflight ``OPTIONS`` requests directly.
"""

from lynx.http.request import Request
from lynx.http.response import Response
from lynx.middlewares.protocol import Next

_ALLOWED_METHODS = "GET, HEAD, PUT, PATCH, POST, DELETE"


class CORSMiddleware:
    __slots__ = ("_origins", "_prefix")

    def __init__(self, origins: tuple[str, ...] = ("*",), *, prefix: str = "/api") -> None:
        self._origins = origins
        self._prefix = "/" + prefix.strip("/")

    def _applies(self, path: str) -> bool:
        return path == self._prefix or path.startswith(self._prefix + "/")

    def _allow_origin(self, request: Request) -> str | None:
        if "*" in self._origins:
            return "*"
        origin = request.headers.get("origin")
        return origin if origin in self._origins else None

    async def __call__(self, request: Request, next: Next) -> Response:
        if not self._applies(request.path):
            return await next(request)

        origin = self._allow_origin(request)
        if request.method == "OPTIONS" and request.headers.get("access-control-request-method"):
            response = Response(status=204)
            if origin is not None:
                requested = request.headers.get("access-control-request-headers")
                response = response.with_headers({
                    "Access-Control-Allow-Origin": origin,
                    "Access-Control-Allow-Methods": _ALLOWED_METHODS,
                    "Access-Control-Allow-Headers": requested or "*",
                })
            return response

        response = await next(request)
        if origin is None:
            return response
        response = response.with_header("Access-Control-Allow-Origin", origin)
        if origin != "*":
            response = response.with_header("Vary", "Origin")
        return response
