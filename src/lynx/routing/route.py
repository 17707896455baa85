"""Route metadata types.

A ``RouteDescriptor`` is built by the verb decorators in
``lynx.decorators`` and refined by the modifier decorators stacked
above it. The ``@route`` class decorator collects every descriptor of a
class into its ``ControllerDescriptor``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lynx._internal.types import DisabledPredicate, Verifier
from lynx.routing.params import argument_names


class HttpVerb(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True, slots=True)
class BodyDescriptor:
    """Validate the request body against *schema* and pass it as *name*."""

    name: str
    schema: Any = None


@dataclass(frozen=True, slots=True)
class VerifierDescriptor:
    function: Verifier
    is_async: bool = False


@dataclass(slots=True)
class RouteDescriptor:
    """Everything lynx knows about one decorated handler."""

    verb: HttpVerb
    path: str
    method_name: str
    handler: Callable[..., Any]
    body: BodyDescriptor | None = None
    is_api: bool = False
    is_multipart_form: bool = False
    verifiers: list[VerifierDescriptor] = field(default_factory=list)
    name: str | None = None
    disabled: DisabledPredicate | None = None

    @property
    def arguments(self) -> list[str]:
        """Path parameter names, in declaration order."""
        return argument_names(self.path)

    def is_disabled(self) -> bool:
        return self.disabled is not None and bool(self.disabled())


@dataclass(frozen=True, slots=True)
class ControllerDescriptor:
    """Base path plus routes, in class-body order."""

    base_path: str
    routes: tuple[RouteDescriptor, ...] = ()


@dataclass(frozen=True, slots=True)
class MiddlewareDescriptor:
    """Mount path of a middleware class (Express syntax, prefix match)."""

    path: str
