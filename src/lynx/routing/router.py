"""Ordered layer stack.

Lynx dispatches the way Express does: layers (middleware mounts and
routes) are tried in registration order, and every matching layer may
either answer the request or fall through to the next one. A layer
callback answers by returning ``True``; ``False`` means "not mine".
"""

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lynx.routing.params import CompiledPath, compile_path

if TYPE_CHECKING:
    from lynx.http.request import Request
    from lynx.http.writer import ResponseWriter
    from lynx.routing.route import RouteDescriptor

type LayerCallback = Callable[[Request, ResponseWriter], Awaitable[bool]]


@dataclass(frozen=True, slots=True)
class Layer:
    """One entry of the stack.

    ``method`` is ``None`` for middleware mounts, which match any method
    and match their path as a prefix.
    """

    compiled: CompiledPath
    callback: LayerCallback
    method: str | None = None
    route: RouteDescriptor | None = None
    owner: Any = None

    @property
    def path(self) -> str:
        return self.compiled.path

    def matches_method(self, method: str) -> bool:
        if self.method is None or self.method == method:
            return True
        return method == "HEAD" and self.method == "GET"


class Router:
    """Registration-ordered list of layers."""

    __slots__ = ("_layers",)

    def __init__(self) -> None:
        self._layers: list[Layer] = []

    def mount(self, path: str, callback: LayerCallback, *, owner: Any = None) -> Layer:
        """Add a middleware layer matching *path* as a prefix."""
        layer = Layer(compile_path(path, end=False), callback, owner=owner)
        self._layers.append(layer)
        return layer

    def add(
        self,
        method: str,
        path: str,
        callback: LayerCallback,
        *,
        route: RouteDescriptor | None = None,
        owner: Any = None,
    ) -> Layer:
        """Add a route layer matching *method* and the whole of *path*."""
        layer = Layer(compile_path(path), callback, method.upper(), route, owner)
        self._layers.append(layer)
        return layer

    def match(self, method: str, path: str) -> Iterator[tuple[Layer, dict[str, str]]]:
        """Yield every matching layer with its path parameters, in order."""
        method = method.upper()
        for layer in self._layers:
            if not layer.matches_method(method):
                continue
            params = layer.compiled.match(path)
            if params is not None:
                yield layer, params

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def routes(self) -> tuple[Layer, ...]:
        """Route layers only (middleware mounts excluded)."""
        return tuple(layer for layer in self._layers if layer.method is not None)

    def __len__(self) -> int:
        return len(self._layers)
