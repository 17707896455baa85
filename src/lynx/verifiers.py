"""Standard route verifiers.

Use with ``@verify``::

    @verify(is_staff_or_greater)
    @get("/admin")
    async def admin(self, request): ...

A verifier answering ``False`` does not fail the request: the
dispatcher moves on to the next matching layer.
"""

from typing import Any

STAFF_LEVEL = 500
ADMIN_LEVEL = 1000


def auth_user(request: Any, res: Any = None) -> bool:
    """The request carries an authenticated user."""
    return request.lynx.user is not None


def not_auth_user(request: Any, res: Any = None) -> bool:
    """The request is anonymous."""
    return not auth_user(request, res)


def is_staff_or_greater(request: Any, res: Any = None) -> bool:
    """Authenticated user with at least staff level."""
    if not auth_user(request, res):
        return False
    return getattr(request.lynx.user, "level", 0) >= STAFF_LEVEL


def is_admin(request: Any, res: Any = None) -> bool:
    """Authenticated user with admin level."""
    if not auth_user(request, res):
        return False
    return getattr(request.lynx.user, "level", 0) >= ADMIN_LEVEL
