"""Base class for controllers.

Controllers are instantiated once per application with the ``App``.
Their ``post_constructor`` hook runs lazily, exactly once, before the
first request any of their routes handles.
"""

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from lynx._internal.invoke import invoke
from lynx.decorators import controller_descriptor
from lynx.errors import HTTPError, error
from lynx.responses import (
    FileOptions,
    FileResponse,
    RedirectResponse,
    RenderResponse,
    SkipResponse,
    UnauthorizedResponse,
    XmlResponse,
)
from lynx.routing.route import ControllerDescriptor
from lynx.storage import Media

if TYPE_CHECKING:
    from lynx.app import App
    from lynx.http.request import Request


class BaseController:
    """Helpers for building responses from controller methods."""

    def __init__(self, app: App) -> None:
        self.app = app
        self._init_future: asyncio.Future[None] | None = None
        self._initialized = False

    @property
    def metadata(self) -> ControllerDescriptor | None:
        return controller_descriptor(type(self))

    # -- Lifecycle --

    async def post_constructor(self) -> None:
        """One-time async setup. Override as needed."""

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_initialized(self) -> None:
        """Run ``post_constructor`` once, however many requests race for it.

        The first caller creates a shared future; everybody awaits it. If
        setup fails, every waiter sees the error and the next request
        tries again.
        """
        if self._initialized:
            return
        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._run_post_constructor())
        await asyncio.shield(self._init_future)

    async def _run_post_constructor(self) -> None:
        try:
            await invoke(self.post_constructor)
        except BaseException:
            self._init_future = None
            raise
        self._initialized = True

    # -- Responses --

    def route(self, name: str, parameters: Mapping[str, Any] | None = None) -> str:
        return self.app.route(name, parameters)

    def render(
        self,
        view: str,
        request: Request,
        context: dict[str, Any] | None = None,
        *,
        status: int | None = None,
    ) -> RenderResponse:
        """Render *view* (extension optional); ``req`` joins the context."""
        context = context if context is not None else {}
        context["req"] = request
        return RenderResponse(self._view_name(view), context, status=status)

    def xml(self, view: str, request: Request, context: dict[str, Any] | None = None) -> XmlResponse:
        context = context if context is not None else {}
        context["req"] = request
        return XmlResponse(self._view_name(view), context)

    def redirect(self, route_name: str, parameters: Mapping[str, Any] | None = None) -> RedirectResponse:
        return RedirectResponse(self.route(route_name, parameters))

    def download(self, path: str | Media, options: FileOptions | None = None) -> FileResponse:
        """Serve a stored file or ``Media``.

        Raises ``ValueError`` for a directory ``Media``.
        """
        if isinstance(path, Media):
            if path.is_directory:
                msg = "Unable to download a directory"
                raise ValueError(msg)
            return FileResponse(path.path, content_type=path.mimetype, options=options)
        return FileResponse(path, options=options)

    def unauthorized(self) -> UnauthorizedResponse:
        return UnauthorizedResponse()

    def skip(self) -> SkipResponse:
        return SkipResponse()

    def error(self, status: int, message: str) -> HTTPError:
        return error(status, message)

    def tr(self, key: str, request: Request) -> str:
        return self.app.translate(key, request)

    # -- Mail --

    async def send_mail(
        self,
        request: Request,
        dest: str | list[str],
        subject_template: str,
        text_template: str,
        html_template: str,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """Render subject, text and html templates and send them.

        *subject_template* is a template string; the other two are view
        names. Returns ``False`` when the mail client reports failure.
        """
        context = context if context is not None else {}
        context["req"] = request
        env = self.app.template_environment
        subject = env.from_string(subject_template).render(context)
        text = env.get_template(self._view_name(text_template)).render(context)
        html = env.get_template(self._view_name(html_template)).render(context)
        return await self.app.mail_client.send_raw_mail(dest, subject.strip(), text, html)

    def _view_name(self, view: str) -> str:
        extension = self.app.config.template_extension
        return view if view.endswith(extension) else view + extension
