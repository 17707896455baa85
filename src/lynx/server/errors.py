"""Last-resort error handling for lynx requests.

Whatever escapes the terminal error controller (or a pipeline
middleware) ends up here and becomes a plain-text response.
"""

import logging
import traceback

from lynx.errors import HTTPError
from lynx.http.request import Request
from lynx.http.response import Response

logger = logging.getLogger("lynx.server")

_TEXT = "text/plain; charset=utf-8"


def handle_http_error(exc: HTTPError, request: Request, debug: bool) -> Response:
    """Map an ``HTTPError`` to a plain response with its status and headers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    response = Response(body=detail, status=exc.status, content_type=_TEXT)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, debug: bool) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)
    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500, content_type=_TEXT)
    return Response(body="Internal Server Error", status=500, content_type=_TEXT)
