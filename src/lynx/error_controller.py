"""Terminal handling for unmatched requests and failed dispatches.

``ErrorController`` is asked twice at most per request: when no layer
answered (``on_not_found``) and when a layer raised (``on_error``). For
API routes it raises a status-carrying error, which the handler turns
into a JSON envelope; page routes get an HTML view.

Replace it with ``AppConfig(error_controller=MyErrorController)``; any
callable taking the ``App`` works.
"""

import traceback
from typing import TYPE_CHECKING

from lynx.controller import BaseController
from lynx.errors import message_of, status_of
from lynx.responses import LynxResponse

if TYPE_CHECKING:
    from lynx.http.request import Request

NOT_FOUND_VIEW = "lynx/404"
ERROR_VIEW = "lynx/error"


class ErrorController(BaseController):
    async def on_not_found(self, request: Request) -> LynxResponse:
        if request.lynx.is_api:
            raise self.error(404, "Not found")
        return self.render(NOT_FOUND_VIEW, request, status=404)

    async def on_error(self, exc: Exception, request: Request) -> LynxResponse:
        if request.lynx.is_api:
            raise self.error(status_of(exc, 500), message_of(exc))
        production = self.app.config.production
        context = {
            "error": exc,
            "message": message_of(exc),
            "error_type": type(exc).__name__,
            "traceback": "" if production else "".join(traceback.format_exception(exc)),
            "is_production": production,
        }
        return self.render(ERROR_VIEW, request, context)
