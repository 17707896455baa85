"""Class-based middleware mounted on a path.

Subclass ``BaseMiddleware``, decorate with ``@middleware(path)`` and
implement ``apply``. Return ``BLOCK_CHAIN`` to stop processing (after
writing a response), anything else to continue::

    @middleware("/admin/*")
    class AdminOnly(BaseMiddleware):
        async def apply(self, request, res):
            if not is_staff_or_greater(request, res):
                res.set_status(403).send("Forbidden")
                return BLOCK_CHAIN

An exception raised by ``apply`` answers with its status (default 400)
and message.
"""

from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from lynx.app import App
    from lynx.http.request import Request
    from lynx.http.writer import ResponseWriter

BLOCK_CHAIN: Final = object()


class BaseMiddleware:
    def __init__(self, app: App) -> None:
        self.app = app

    async def apply(self, request: Request, res: ResponseWriter) -> Any:
        return None
