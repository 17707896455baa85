"""User authentication.

``UserAuthMiddleware`` is mounted on every path and fills
``request.lynx.user``: first from the session's ``user_id``, then from
an ``Authorization: Bearer <token>`` header. Users are looked up with
``AppConfig.load_user`` (sync or async, ``id -> user | None``).

Tokens are signed with ``itsdangerous`` using ``AppConfig.token_secret``
and carry only the user id.
"""

import logging
from typing import TYPE_CHECKING, Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from lynx._internal.invoke import invoke
from lynx.decorators import middleware
from lynx.errors import ConfigurationError
from lynx.middlewares.base import BaseMiddleware
from lynx.middlewares.sessions import current_session, regenerate_session

if TYPE_CHECKING:
    from lynx.http.request import Request
    from lynx.http.writer import ResponseWriter

logger = logging.getLogger("lynx.auth")

SESSION_USER_KEY = "user_id"
TOKEN_MAX_AGE = 365 * 86400


class TokenSigner:
    """Issue and check bearer tokens for user ids."""

    __slots__ = ("_max_age", "_serializer")

    def __init__(self, secret: str, *, max_age: int = TOKEN_MAX_AGE) -> None:
        if not secret:
            msg = "AppConfig.token_secret must not be empty to issue tokens."
            raise ConfigurationError(msg)
        self._serializer = URLSafeTimedSerializer(secret, salt="lynx.token")
        self._max_age = max_age

    def generate(self, user: Any) -> str:
        return self._serializer.dumps({"id": user_id_of(user)})

    def user_id(self, token: str) -> Any:
        """The id inside *token*, or ``None`` if it is invalid or expired."""
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except BadSignature:
            return None
        return data.get("id") if isinstance(data, dict) else None


def user_id_of(user: Any) -> Any:
    if isinstance(user, dict):
        return user.get("id")
    return getattr(user, "id", None)


def create_user_session(request: Request, user: Any) -> None:
    """Log *user* in: fresh session holding the user id."""
    session = regenerate_session()
    session[SESSION_USER_KEY] = user_id_of(user)
    request.lynx.user = user


def destroy_user_session(request: Request) -> None:
    """Log out: drop the session and the request's user."""
    regenerate_session()
    request.lynx.user = None


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


@middleware("/*")
class UserAuthMiddleware(BaseMiddleware):
    """Resolve the current user from the session or a bearer token."""

    async def apply(self, request: Request, res: ResponseWriter) -> None:
        load_user = self.app.config.load_user
        if load_user is None or request.lynx.user is not None:
            return

        session = current_session()
        if session is not None and session.get(SESSION_USER_KEY) is not None:
            request.lynx.user = await invoke(load_user, session[SESSION_USER_KEY])
            if request.lynx.user is not None:
                return

        token = bearer_token(request)
        if token is None or not self.app.config.token_secret:
            return
        user_id = self.app.tokens.user_id(token)
        if user_id is None:
            logger.debug("Rejected bearer token on %s", request.path)
            return
        request.lynx.user = await invoke(load_user, user_id)
