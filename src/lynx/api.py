"""API response envelopes.

Every ``@api()`` route answers with whatever the configured wrapper
builds. The default shape is::

    {"success": true, "data": ...}      on success
    {"success": true|false}             when the handler returns a bool
    {"success": false, "error": "..."}  on failure

Swap it through ``AppConfig(api_response_wrapper=...)``.
"""

from typing import Any, Protocol, runtime_checkable

from lynx.errors import message_of


@runtime_checkable
class APIResponseWrapper(Protocol):
    def on_success(self, response: Any) -> Any: ...
    def on_error(self, error: BaseException) -> Any: ...


def serialize(value: Any) -> Any:
    """Call ``value.serialize()`` when the value offers it (lists item by item)."""
    if isinstance(value, list | tuple):
        return [serialize(item) for item in value]
    serializer = getattr(value, "serialize", None)
    if callable(serializer):
        return serializer()
    return value


class DefaultAPIResponseWrapper:
    """``success``/``data``/``error`` envelope."""

    __slots__ = ()

    def on_success(self, response: Any) -> Any:
        if isinstance(response, bool):
            return {"success": response}
        return {"success": True, "data": serialize(response)}

    def on_error(self, error: BaseException) -> Any:
        return {"success": False, "error": message_of(error)}
