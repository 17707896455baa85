"""ASGI handler — translates ASGI scope/messages to lynx types.

The only component that touches raw ASGI directly. It builds the
``Request``, runs the pipeline middleware around the layer stack, and
hands the result to the sender. Inside the pipeline every matching
layer is tried in order; when none answers, or one raises, the app's
error controller has the last word.
"""

import logging
from collections.abc import Callable
from contextvars import Token
from typing import TYPE_CHECKING, Any

from lynx._internal.asgi import Receive, Scope, Send
from lynx.context import request_var
from lynx.errors import HTTPError, status_of
from lynx.http.request import Request
from lynx.http.response import Response
from lynx.http.writer import ResponseWriter
from lynx.middlewares.protocol import Next
from lynx.responses import LynxResponse
from lynx.server.errors import handle_http_error, handle_internal_error
from lynx.server.sender import send_response

if TYPE_CHECKING:
    from lynx.app import App
    from lynx.routing.router import Router

logger = logging.getLogger("lynx.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    app: App,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, app=app)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> Response:
            res = await run_layers(app, router, req)
            return res.to_response()

        handler: Next = dispatch
        for mw in reversed(middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = handle_http_error(exc, request, app.config.debug)
    except Exception as exc:
        response = handle_internal_error(exc, request, app.config.debug)
    finally:
        request_var.reset(token)

    await send_response(response, send, method=request.method)


async def run_layers(app: App, router: Router, request: Request) -> ResponseWriter:
    """Try every matching layer; fall back to the error controller."""
    request.lynx.lang = app.language_for(request)
    res = ResponseWriter(app.template_environment)
    try:
        for layer, params in router.match(request.method, request.path):
            if await layer.callback(request.with_params(params), res):
                return res
    except Exception as exc:
        return await handle_failure(app, request, res, exc)
    return await handle_not_found(app, request, res)


async def handle_not_found(app: App, request: Request, res: ResponseWriter) -> ResponseWriter:
    logger.debug("404 %s %s", request.method, request.path)
    res = _writable(app, res)
    res.set_status(404)
    try:
        outcome = await app.error_controller.on_not_found(request)
        await _write(outcome, request, res)
    except HTTPError as exc:
        return _api_error(app, request, exc)
    return res


async def handle_failure(app: App, request: Request, res: ResponseWriter, exc: Exception) -> ResponseWriter:
    """Hand a failed dispatch to ``error_controller.on_error``.

    The status already chosen by the dispatcher is kept; otherwise the
    error's own status (default 500) is used.
    """
    status = res.status if res.status >= 400 else status_of(exc, 500)
    if status >= 500:
        logger.error("%d %s %s", status, request.method, request.path, exc_info=exc)
    else:
        logger.debug("%d %s %s: %s", status, request.method, request.path, exc)

    res = _writable(app, res)
    res.set_status(status)
    try:
        outcome = await app.error_controller.on_error(exc, request)
        await _write(outcome, request, res)
    except HTTPError as err:
        return _api_error(app, request, err)
    return res


def _writable(app: App, res: ResponseWriter) -> ResponseWriter:
    """*res*, or a fresh writer when a body was already written."""
    if not res.headers_sent:
        return res
    fresh = ResponseWriter(app.template_environment)
    fresh.set_status(res.status)
    return fresh


async def _write(outcome: Any, request: Request, res: ResponseWriter) -> None:
    if isinstance(outcome, LynxResponse):
        await outcome.perform_response(request, res)
    elif not res.headers_sent:
        res.send(outcome)


def _api_error(app: App, request: Request, exc: HTTPError) -> ResponseWriter:
    """JSON envelope for API routes; re-raise for pages."""
    if not request.lynx.is_api:
        raise exc
    res = ResponseWriter(app.template_environment)
    res.set_status(exc.status)
    res.json(app.api_wrapper.on_error(exc))
    return res
