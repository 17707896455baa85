"""Shared type aliases for lynx internals."""

from collections.abc import Awaitable, Callable

# A verifier receives (request, res) and answers "may this route run?"
type Verifier = Callable[..., bool | Awaitable[bool]]

# Evaluated once at registration; True removes the route
type DisabledPredicate = Callable[[], bool]
