"""Response variants returned by controller methods.

A controller computes *what* to answer; the variant knows *how* to
write it to the ``ResponseWriter``. ``perform_response`` is called
exactly once, by the dispatcher or the error controller; a second call
raises ``RuntimeError``.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio

from lynx.flash import consume_flash

if TYPE_CHECKING:
    from lynx.http.request import Request
    from lynx.http.writer import ResponseWriter

logger = logging.getLogger("lynx.server")


class LynxResponse:
    """Base of all response variants."""

    __slots__ = ("_performed",)

    def __init__(self) -> None:
        self._performed = False

    @property
    def performed(self) -> bool:
        return self._performed

    async def perform_response(self, request: Request, res: ResponseWriter) -> None:
        if self._performed:
            msg = f"{type(self).__name__} has already been performed."
            raise RuntimeError(msg)
        self._performed = True
        await self._perform(request, res)

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        raise NotImplementedError


def _default_language(request: Request) -> str:
    app = request.app
    return app.config.default_language if app is not None else "it"


class RenderResponse(LynxResponse):
    """Render *view* with *context* through the template engine.

    On write the context gains the pending flash messages (consumed),
    every value of the request's context bag, and ``lang``.
    """

    __slots__ = ("context", "status", "view")

    content_type = "text/html; charset=utf-8"
    uses_flash = True

    def __init__(self, view: str, context: dict[str, Any] | None = None, *, status: int | None = None) -> None:
        super().__init__()
        self.view = view
        self.context: dict[str, Any] = context if context is not None else {}
        self.status = status

    def build_context(self, request: Request) -> dict[str, Any]:
        context = dict(self.context)
        if self.uses_flash:
            context["flash"] = consume_flash()
        context.update(request.lynx.ctx)
        context["lang"] = request.lynx.lang or _default_language(request)
        return context

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        context = self.build_context(request)
        if self.status is not None:
            res.set_status(self.status)
        res.set_header("Content-Type", self.content_type)
        res.render(self.view, context)


class XmlResponse(RenderResponse):
    """Like ``RenderResponse`` but XML, and flash messages stay queued."""

    __slots__ = ()

    content_type = "application/xml"
    uses_flash = False


class RedirectResponse(LynxResponse):
    __slots__ = ("status", "url")

    def __init__(self, url: str, status: int = 302) -> None:
        super().__init__()
        self.url = url
        self.status = status

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        res.redirect(self.url, self.status)


class UnauthorizedResponse(LynxResponse):
    __slots__ = ()

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        res.set_status(401)
        res.set_header("Content-Type", "text/plain; charset=utf-8")
        res.send("Unauthorized")


class SkipResponse(LynxResponse):
    """Write nothing; the dispatcher falls through to the next layer."""

    __slots__ = ()

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        return None


@dataclass(frozen=True, slots=True)
class FileOptions:
    """Image variant to serve instead of the original file."""

    width: int
    height: int | None = None

    def cache_key(self) -> str:
        data: dict[str, int] = {"width": self.width}
        if self.height is not None:
            data["height"] = self.height
        return json.dumps(data, separators=(",", ":"))


class FileResponse(LynxResponse):
    """Send a stored file.

    The path goes through the app's UFS (``get_to_cache``). With
    ``options`` the resized variant is served from
    ``<file>_<options-json>`` when cached, otherwise produced by the
    configured ``resizer(path, width, height) -> bytes`` and cached when
    ``caching_images`` is on. A missing file answers 404.
    """

    __slots__ = ("content_type", "options", "path")

    def __init__(
        self,
        path: str,
        *,
        content_type: str | None = None,
        options: FileOptions | None = None,
    ) -> None:
        super().__init__()
        self.path = path
        self.content_type = content_type
        self.options = options

    async def _perform(self, request: Request, res: ResponseWriter) -> None:
        app = request.app
        try:
            local = await app.ufs.get_to_cache(self.path, app.config.cache_path)
            if self.options is None:
                await res.send_file(local, self.content_type)
                return
            await self._send_variant(app, local, self.options, res)
        except FileNotFoundError:
            res.set_status(404)
            res.set_header("Content-Type", "text/plain; charset=utf-8")
            res.send("Not Found")

    async def _send_variant(self, app: Any, local: str, options: FileOptions, res: ResponseWriter) -> None:
        cached = f"{local}_{options.cache_key()}"
        if await anyio.Path(cached).is_file():
            await res.send_file(cached, self.content_type)
            return

        resizer = app.config.resizer
        if resizer is None:
            await res.send_file(local, self.content_type)
            return
        if not await anyio.Path(local).is_file():
            raise FileNotFoundError(local)

        data: bytes = await anyio.to_thread.run_sync(
            resizer, Path(local), options.width, options.height
        )
        if self.content_type:
            res.set_header("Content-Type", self.content_type)
        res.send(data)
        if app.config.caching_images:
            try:
                await anyio.Path(cached).write_bytes(data)
            except OSError:
                logger.exception("Could not cache image variant %s", cached)
