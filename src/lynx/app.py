"""Lynx application class.

Mutable during setup (controllers, middleware, filters, hooks).
Frozen at runtime when app.run() or __call__() is first invoked: the
configured folders are scanned, templates and translations are loaded,
and the layer stack is compiled.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from kida import Environment

from lynx._internal.asgi import Receive, Scope, Send
from lynx.api import APIResponseWrapper, DefaultAPIResponseWrapper
from lynx.config import AppConfig
from lynx.controller import BaseController
from lynx.decorators import controller_descriptor, middleware_descriptor
from lynx.error_controller import ErrorController
from lynx.errors import ConfigurationError
from lynx.http.request import Request
from lynx.i18n import choose_language, load_translations, perform_translation
from lynx.loader import discover_controllers, discover_middlewares
from lynx.mail import MailClient, SMTPMailClient
from lynx.middlewares.auth import TokenSigner, UserAuthMiddleware
from lynx.middlewares.base import BaseMiddleware
from lynx.middlewares.cors import CORSMiddleware
from lynx.middlewares.protocol import Middleware
from lynx.middlewares.sessions import SessionConfig, SessionMiddleware
from lynx.middlewares.static import StaticFiles
from lynx.modules import BaseModule
from lynx.routing.params import join_paths
from lynx.routing.router import Router
from lynx.routing.urls import RouteTable
from lynx.server.dispatcher import build_middleware_callback, build_route_callback
from lynx.server.handler import handle_request
from lynx.storage import UFS, LocalUFS
from lynx.templating.filters import app_globals, build_template_map
from lynx.templating.integration import create_environment

logger = logging.getLogger("lynx.server")


class App:
    """The lynx application.

    Mutable during setup, frozen on first use. Controllers and
    middlewares come from the configured folders (scanned at freeze
    time) and from explicit ``add_controller`` / ``use_middleware``
    calls; folder classes are registered first.

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even when several ASGI workers hit
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_api_wrapper",
        "_controller_classes",
        "_controllers",
        "_error_controller",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_mail_client",
        "_middleware",
        "_middleware_classes",
        "_middleware_list",
        "_route_table",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "_template_map",
        "_tokens",
        "_translations",
        "_ufs",
        "config",
        "modules",
    )

    def __init__(self, config: AppConfig | None = None, *, modules: Iterable[BaseModule] = ()) -> None:
        config = config or AppConfig()
        # A module listed twice is mounted once
        unique = tuple(dict.fromkeys(modules))
        for module in unique:
            config = module.mount(config)
        self.config: AppConfig = config
        self.modules: tuple[BaseModule, ...] = unique

        self._controller_classes: list[type[BaseController]] = []
        self._middleware_classes: list[type[BaseMiddleware]] = []
        self._middleware_list: list[Middleware] = []
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        self._ufs: UFS = config.ufs or LocalUFS(config.upload_path)
        self._mail_client: MailClient = config.mail_client or SMTPMailClient(config.mailer)
        self._api_wrapper: APIResponseWrapper = config.api_response_wrapper or DefaultAPIResponseWrapper()
        self._tokens: TokenSigner | None = None
        self._route_table = RouteTable()

        # Compiled state — set during _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._kida_env: Environment | None = None
        self._translations: dict[str, dict[str, str]] = {}
        self._template_map: dict[str, str] = {}
        self._controllers: list[BaseController] = []
        self._error_controller: Any = None

    # -- Registration --

    def add_controller[C: type[BaseController]](self, cls: C) -> C:
        """Register a ``@route`` controller class (usable as a decorator)."""
        self._check_not_frozen()
        if controller_descriptor(cls) is None:
            msg = f"{cls.__name__} is missing its @route decorator."
            raise ConfigurationError(msg)
        self._controller_classes.append(cls)
        return cls

    def use_middleware[M: type[BaseMiddleware]](self, cls: M) -> M:
        """Register a ``@middleware`` class (usable as a decorator)."""
        self._check_not_frozen()
        if middleware_descriptor(cls) is None:
            msg = f"{cls.__name__} is missing its @middleware decorator."
            raise ConfigurationError(msg)
        self._middleware_classes.append(cls)
        return cls

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a pipeline middleware ``(request, next) -> Response``."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Services --

    @property
    def ufs(self) -> UFS:
        return self._ufs

    @property
    def mail_client(self) -> MailClient:
        return self._mail_client

    @property
    def api_wrapper(self) -> APIResponseWrapper:
        return self._api_wrapper

    @property
    def tokens(self) -> TokenSigner:
        """Bearer token signer. Raises ``ConfigurationError`` without a secret."""
        if self._tokens is None:
            self._tokens = TokenSigner(self.config.token_secret)
        return self._tokens

    def generate_token_for_user(self, user: Any) -> str:
        return self.tokens.generate(user)

    def user_id_from_token(self, token: str) -> Any:
        return self.tokens.user_id(token)

    @property
    def route_table(self) -> RouteTable:
        return self._route_table

    @property
    def router(self) -> Router:
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    @property
    def template_environment(self) -> Environment:
        self._ensure_frozen()
        assert self._kida_env is not None
        return self._kida_env

    @property
    def template_map(self) -> Mapping[str, str]:
        return self._template_map

    @property
    def controllers(self) -> tuple[BaseController, ...]:
        return tuple(self._controllers)

    @property
    def error_controller(self) -> Any:
        self._ensure_frozen()
        return self._error_controller

    # -- URLs and translations --

    def route(self, name: str, parameters: Mapping[str, Any] | None = None) -> str:
        """URL of the route called *name* (an unknown name is used as-is)."""
        return self._route_table.url_for(name, parameters)

    @property
    def translations(self) -> Mapping[str, Mapping[str, str]]:
        return self._translations

    def language_for(self, request: Request) -> str:
        """Best language for *request* among the loaded translations."""
        return choose_language(
            request.accepts_languages(),
            self._translations,
            self.config.default_language,
        )

    def translate(self, key: str, request: Request | None = None) -> str:
        if request is None:
            lang = self.config.default_language
        else:
            lang = request.lynx.lang or self.language_for(request)
        return perform_translation(key, self._translations.get(lang))

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with pounce (auto-reload in debug mode)."""
        self._ensure_frozen()

        from lynx.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            app=self,
            router=self._router,
            middleware=self._middleware,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs the startup/shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config

        # 1. Translations and the virtual view map
        self._translations = load_translations(config.translation_folders)
        self._template_map = build_template_map(config.views_folders, config.template_extension)

        # 2. Kida environment; user globals may shadow built-ins
        self._kida_env = create_environment(
            config,
            self._template_filters,
            {**app_globals(self), **self._template_globals},
        )

        # 3. Layer stack: built-in auth, middlewares, then controllers
        router = Router()
        middleware_classes: list[type[BaseMiddleware]] = [UserAuthMiddleware]
        for folder in config.middlewares_folders:
            middleware_classes.extend(discover_middlewares(folder))
        middleware_classes.extend(self._middleware_classes)
        for cls in middleware_classes:
            self._mount_middleware(router, cls)

        controller_classes: list[type[BaseController]] = []
        for folder in config.controllers_folders:
            controller_classes.extend(discover_controllers(folder))
        controller_classes.extend(self._controller_classes)
        for cls in controller_classes:
            self._mount_controller(router, cls)
        self._router = router

        factory = config.error_controller or ErrorController
        self._error_controller = factory(self)

        # 4. Pipeline middleware, outermost first
        pipeline: list[Callable[..., Any]] = []
        if config.cors_enabled:
            pipeline.append(CORSMiddleware(config.cors_origins))
        pipeline.extend(StaticFiles(folder) for folder in config.public_folders)
        if config.session_secret:
            pipeline.append(
                SessionMiddleware(
                    SessionConfig(
                        secret_key=config.session_secret,
                        cookie_name=config.session_cookie,
                        max_age=config.session_max_age,
                    )
                )
            )
        pipeline.extend(config.global_interceptors)
        pipeline.extend(self._middleware_list)
        self._middleware = tuple(pipeline)

        self._frozen = True

    def _mount_middleware(self, router: Router, cls: type[BaseMiddleware]) -> None:
        descriptor = middleware_descriptor(cls)
        if descriptor is None:
            msg = f"{cls.__name__} is missing its @middleware decorator."
            raise ConfigurationError(msg)
        instance = cls(self)
        router.mount(descriptor.path, build_middleware_callback(instance), owner=instance)
        logger.debug("Mounted middleware %s at %s", cls.__name__, descriptor.path)

    def _mount_controller(self, router: Router, cls: type[BaseController]) -> None:
        descriptor = controller_descriptor(cls)
        if descriptor is None:
            msg = f"{cls.__name__} is missing its @route decorator."
            raise ConfigurationError(msg)
        controller = cls(self)
        self._controllers.append(controller)
        for route in descriptor.routes:
            if route.is_disabled():
                logger.debug("Skipping disabled route %s.%s", cls.__name__, route.method_name)
                continue
            path = join_paths(descriptor.base_path, route.path)
            router.add(
                route.verb.value,
                path,
                build_route_callback(self, controller, route),
                route=route,
                owner=controller,
            )
            if route.name:
                self._route_table.add(route.name, path)
            logger.debug("Mounted %s %s -> %s.%s", route.verb.value, path, cls.__name__, route.method_name)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register controllers, middleware, and filters before calling app.run()."
            )
            raise RuntimeError(msg)
