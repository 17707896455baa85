"""Route and middleware dispatch.

Turns a ``RouteDescriptor`` (or a ``BaseMiddleware`` instance) into a
layer callback for the router. Per request a route goes through::

    verify -> (fall through | initialize controller -> build args ->
    call handler -> write result | handle failure)

A callback returns ``True`` once it has answered and ``False`` to let
the next matching layer try. Page-route failures propagate to the
terminal error stage in ``lynx.server.handler``; API-route failures are
answered here with the error envelope.
"""

import inspect
import logging
from typing import TYPE_CHECKING, Any

from lynx._internal.invoke import fit_positional, invoke
from lynx.errors import message_of, status_of
from lynx.middlewares.base import BLOCK_CHAIN
from lynx.responses import LynxResponse, SkipResponse
from lynx.validation import ValidateObject

if TYPE_CHECKING:
    from lynx.app import App
    from lynx.controller import BaseController
    from lynx.http.request import Request
    from lynx.http.writer import ResponseWriter
    from lynx.middlewares.base import BaseMiddleware
    from lynx.routing.route import RouteDescriptor, VerifierDescriptor
    from lynx.routing.router import LayerCallback

logger = logging.getLogger("lynx.dispatcher")


async def check_verifier(verifier: VerifierDescriptor, request: Request, res: ResponseWriter) -> bool:
    """Call a sync verifier directly, await an async one."""
    outcome = verifier.function(request, res)
    if verifier.is_async:
        return bool(await outcome)
    if inspect.isawaitable(outcome):
        if inspect.iscoroutine(outcome):
            outcome.close()
        msg = f"{verifier.function!r} returned an awaitable; register it with @async_verify"
        raise TypeError(msg)
    return bool(outcome)


async def run_verifiers(descriptor: RouteDescriptor, request: Request, res: ResponseWriter) -> bool:
    """True when every verifier passes. Errors count as a failure."""
    for verifier in descriptor.verifiers:
        try:
            if not await check_verifier(verifier, request, res):
                return False
        except Exception:
            logger.exception(
                "Verifier %s failed on %s %s",
                getattr(verifier.function, "__name__", verifier.function),
                request.method,
                request.path,
            )
            return False
    return True


async def build_arguments(descriptor: RouteDescriptor, request: Request, res: ResponseWriter) -> list[Any]:
    """Positional handler arguments: path params, [body], request, res."""
    args: list[Any] = [request.path_params.get(arg) for arg in descriptor.arguments]
    if descriptor.body is not None:
        parsed = await request.parsed_body()
        args.append(ValidateObject(parsed, descriptor.body.schema, request.accepts_languages()))
    elif descriptor.is_multipart_form:
        await request.parsed_body()
    args.append(request)
    args.append(res)
    return args


async def apply_interceptors(app: App, result: Any, request: Request) -> Any:
    """Run the before-perform-response interceptors in order."""
    for interceptor in app.config.before_perform_response_interceptors:
        try:
            result = await invoke(interceptor, result, request)
        except Exception:
            logger.exception("Response interceptor %r failed; skipping it", interceptor)
    return result


async def write_page_result(app: App, result: Any, request: Request, res: ResponseWriter) -> bool:
    result = await apply_interceptors(app, result, request)
    if isinstance(result, SkipResponse):
        await result.perform_response(request, res)
        return False
    if isinstance(result, LynxResponse):
        await result.perform_response(request, res)
    elif not res.headers_sent:
        res.send(result)
    return True


def build_route_callback(app: App, controller: BaseController, descriptor: RouteDescriptor) -> LayerCallback:
    """Layer callback running *descriptor*'s handler on *controller*."""
    handler = getattr(controller, descriptor.method_name)

    async def callback(request: Request, res: ResponseWriter) -> bool:
        request.lynx.route = descriptor
        if not await run_verifiers(descriptor, request, res):
            return False

        try:
            await controller.ensure_initialized()
            args = await build_arguments(descriptor, request, res)
            result = await invoke(handler, *fit_positional(handler, args))
            if descriptor.is_api:
                res.json(app.api_wrapper.on_success(result))
                return True
            return await write_page_result(app, result, request, res)
        except Exception as exc:
            if not res.headers_sent:
                res.set_status(status_of(exc, 400))
            if not descriptor.is_api:
                raise
            logger.debug("API error on %s %s: %s", request.method, request.path, exc)
            if not res.headers_sent:
                res.json(app.api_wrapper.on_error(exc))
            return True

    callback.__qualname__ = f"{type(controller).__name__}.{descriptor.method_name}"
    return callback


def build_middleware_callback(instance: BaseMiddleware) -> LayerCallback:
    """Layer callback running ``instance.apply``.

    ``BLOCK_CHAIN`` (or a response already written) answers the request;
    an exception answers with its status, default 400, and message.
    """

    async def callback(request: Request, res: ResponseWriter) -> bool:
        try:
            outcome = await instance.apply(request, res)
        except Exception as exc:
            logger.warning(
                "Middleware %s rejected %s %s: %s",
                type(instance).__name__,
                request.method,
                request.path,
                exc,
            )
            if not res.headers_sent:
                res.set_status(status_of(exc, 400))
                res.set_header("Content-Type", "text/plain; charset=utf-8")
                res.send(message_of(exc))
            return True
        return outcome is BLOCK_CHAIN or res.headers_sent

    callback.__qualname__ = f"{type(instance).__name__}.apply"
    return callback
