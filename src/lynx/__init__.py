"""Lynx — decorator-driven MVC on ASGI.

Controllers declare their routes with decorators; the app discovers
them, wires verifiers, body validation and API envelopes, and renders
kida templates for page routes.

Basic usage::

    from lynx import App, AppConfig, BaseController, api, get, route

    @route("/hello")
    class HelloController(BaseController):

        @get("/")
        async def index(self, request, res):
            return self.render("hello", request, {"name": "world"})

        @api()
        @get("/:name")
        async def greet(self, name, request, res):
            return {"greeting": f"Hello, {name}"}

    app = App(AppConfig(views_folders=("views",)))
    app.add_controller(HelloController)
    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BLOCK_CHAIN",
    "BaseController",
    "BaseMiddleware",
    "BaseModule",
    "ConfigurationError",
    "ErrorController",
    "FileOptions",
    "HTTPError",
    "LynxError",
    "NotFound",
    "Request",
    "ResponseWriter",
    "SimpleModule",
    "Unauthorized",
    "ValidateObject",
    "api",
    "async_verify",
    "body",
    "delete",
    "disabled_if",
    "error",
    "flash",
    "get",
    "get_request",
    "get_session",
    "middleware",
    "multipart_form",
    "name",
    "patch",
    "post",
    "put",
    "route",
    "verify",
]

_DECORATORS = frozenset({
    "api",
    "async_verify",
    "body",
    "delete",
    "disabled_if",
    "get",
    "middleware",
    "multipart_form",
    "name",
    "patch",
    "post",
    "put",
    "route",
    "verify",
})


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import lynx`` fast while providing a clean top-level API.
    """
    if name == "App":
        from lynx.app import App

        return App

    if name == "AppConfig":
        from lynx.config import AppConfig

        return AppConfig

    if name in _DECORATORS:
        from lynx import decorators as _decorators

        return getattr(_decorators, name)

    if name == "BaseController":
        from lynx.controller import BaseController

        return BaseController

    if name == "ErrorController":
        from lynx.error_controller import ErrorController

        return ErrorController

    if name in ("BLOCK_CHAIN", "BaseMiddleware"):
        from lynx.middlewares import base as _base

        return getattr(_base, name)

    if name in ("BaseModule", "SimpleModule"):
        from lynx import modules as _modules

        return getattr(_modules, name)

    if name == "FileOptions":
        from lynx.responses import FileOptions

        return FileOptions

    if name == "Request":
        from lynx.http.request import Request

        return Request

    if name == "ResponseWriter":
        from lynx.http.writer import ResponseWriter

        return ResponseWriter

    if name == "ValidateObject":
        from lynx.validation import ValidateObject

        return ValidateObject

    if name == "flash":
        from lynx.flash import flash

        return flash

    if name == "get_request":
        from lynx.context import get_request

        return get_request

    if name == "get_session":
        from lynx.middlewares.sessions import get_session

        return get_session

    if name in ("ConfigurationError", "HTTPError", "LynxError", "NotFound", "Unauthorized", "error"):
        from lynx import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
