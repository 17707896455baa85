"""Declarative route metadata.

Verb decorators attach a ``RouteDescriptor`` to the function they
decorate. Modifier decorators refine the descriptor of the verb written
directly below them on the *same* function::

    @route("/users")
    class UserController(BaseController):

        @api()
        @verify(auth_user)
        @get("/:id")
        async def detail(self, id, request, res): ...

        @api()
        @body("user", USER_SCHEMA)
        @post("/")
        async def create(self, user, request, res): ...

Python applies decorators bottom-up, so ``@get`` runs first and the
modifiers above it find its descriptor on the function. Metadata never
leaves the function it was declared on: ``api()`` above ``create`` can
only ever mark ``create``'s route.

A modifier written *below* every verb is kept as pending on the
function and folded into the next verb applied. Modifiers on a function
no verb ever claims are ignored.

``@route(base_path)`` collects the descriptors of a class (in
definition order) into its ``ControllerDescriptor``; ``@middleware(path)``
gives a middleware class its mount path.
"""

import logging
from collections.abc import Callable
from typing import Any

from lynx._internal.types import DisabledPredicate, Verifier
from lynx.routing.route import (
    BodyDescriptor,
    ControllerDescriptor,
    HttpVerb,
    MiddlewareDescriptor,
    RouteDescriptor,
    VerifierDescriptor,
)

logger = logging.getLogger("lynx.routing")

ROUTES_ATTR = "__lynx_routes__"
PENDING_ATTR = "__lynx_pending__"
CONTROLLER_ATTR = "__lynx_controller__"
MIDDLEWARE_ATTR = "__lynx_middleware__"

type Modifier = Callable[[RouteDescriptor], None]


def _unwrap(member: Any) -> Any:
    """The plain function behind a staticmethod/classmethod, else *member*."""
    return getattr(member, "__func__", member)


def routes_of(func: Any) -> list[RouteDescriptor]:
    """Descriptors attached to *func* (empty if it is not a route)."""
    return list(getattr(_unwrap(func), ROUTES_ATTR, ()))


# -- Verbs --


def _verb(verb: HttpVerb, path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        target = _unwrap(func)
        descriptor = RouteDescriptor(
            verb=verb,
            path=path,
            method_name=target.__name__,
            handler=target,
        )
        for modifier in target.__dict__.pop(PENDING_ATTR, []):
            modifier(descriptor)
        target.__dict__.setdefault(ROUTES_ATTR, []).append(descriptor)
        return func

    return decorator


def get(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the method for ``GET path``."""
    return _verb(HttpVerb.GET, path)


def post(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the method for ``POST path``."""
    return _verb(HttpVerb.POST, path)


def put(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the method for ``PUT path``."""
    return _verb(HttpVerb.PUT, path)


def delete(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the method for ``DELETE path``."""
    return _verb(HttpVerb.DELETE, path)


def patch(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the method for ``PATCH path``."""
    return _verb(HttpVerb.PATCH, path)


# -- Modifiers --


def _modifier(modifier: Modifier) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        target = _unwrap(func)
        routes: list[RouteDescriptor] | None = getattr(target, ROUTES_ATTR, None)
        if routes:
            modifier(routes[-1])
        else:
            target.__dict__.setdefault(PENDING_ATTR, []).append(modifier)
        return func

    return decorator


def body(name: str, schema: Any = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Validate the request body with *schema* and pass it to the handler.

    The handler receives a ``ValidateObject`` right after the path
    parameters; checking ``is_valid`` is up to the handler.
    """

    def apply(descriptor: RouteDescriptor) -> None:
        descriptor.body = BodyDescriptor(name, schema)

    return _modifier(apply)


def api() -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap results and errors in the JSON API envelope."""

    def apply(descriptor: RouteDescriptor) -> None:
        descriptor.is_api = True

    return _modifier(apply)


def multipart_form() -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Parse a multipart body (files land in ``request.lynx.files``)."""

    def apply(descriptor: RouteDescriptor) -> None:
        descriptor.is_multipart_form = True

    return _modifier(apply)


def name(route_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Name the route for reverse URL generation."""

    def apply(descriptor: RouteDescriptor) -> None:
        descriptor.name = route_name

    return _modifier(apply)


def _add_verifier(descriptor: RouteDescriptor, verifier: VerifierDescriptor) -> None:
    # Decorators apply bottom-up; prepend so verifiers run top to bottom.
    descriptor.verifiers.insert(0, verifier)


def verify(func: Verifier) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Gate the route with a synchronous ``(request, res) -> bool`` check."""
    return _modifier(lambda d: _add_verifier(d, VerifierDescriptor(func, is_async=False)))


def async_verify(func: Verifier) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Gate the route with an ``async (request, res) -> bool`` check."""
    return _modifier(lambda d: _add_verifier(d, VerifierDescriptor(func, is_async=True)))


def disabled_if(predicate: DisabledPredicate) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Leave the route out at registration time when *predicate()* is true."""

    def apply(descriptor: RouteDescriptor) -> None:
        descriptor.disabled = predicate

    return _modifier(apply)


# -- Class decorators --


def route(base_path: str) -> Callable[[type], type]:
    """Declare a controller class mounted at *base_path*.

    Collects the route descriptors of the class and its bases (base
    classes first, overrides replacing the method they shadow).
    """

    def decorator(cls: type) -> type:
        members: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            members.update(klass.__dict__)

        routes: list[RouteDescriptor] = []
        for attr_name, member in members.items():
            target = _unwrap(member)
            if not callable(target):
                continue
            descriptors = getattr(target, ROUTES_ATTR, None)
            if descriptors:
                routes.extend(descriptors)
            elif getattr(target, PENDING_ATTR, None):
                logger.debug(
                    "Ignoring route modifiers on %s.%s: no verb decorator",
                    cls.__name__,
                    attr_name,
                )

        setattr(cls, CONTROLLER_ATTR, ControllerDescriptor(base_path, tuple(routes)))
        return cls

    return decorator


def middleware(path: str) -> Callable[[type], type]:
    """Declare a middleware class mounted at *path* (e.g. ``"/*"``)."""

    def decorator(cls: type) -> type:
        setattr(cls, MIDDLEWARE_ATTR, MiddlewareDescriptor(path))
        return cls

    return decorator


def controller_descriptor(cls: type) -> ControllerDescriptor | None:
    """The descriptor ``@route`` put on *cls* itself (not inherited)."""
    return cls.__dict__.get(CONTROLLER_ATTR)


def middleware_descriptor(cls: type) -> MiddlewareDescriptor | None:
    """The descriptor ``@middleware`` put on *cls* itself (not inherited)."""
    return cls.__dict__.get(MIDDLEWARE_ATTR)
