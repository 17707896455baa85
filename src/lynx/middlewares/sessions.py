"""Session middleware — signed cookie sessions.

Session data is serialized as JSON and signed with ``itsdangerous``.
The session dict is stored in a ContextVar, reachable through
``get_session()`` from controllers, verifiers and middleware.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from lynx.errors import ConfigurationError
from lynx.http.cookies import SetCookie
from lynx.http.request import Request
from lynx.http.response import Response
from lynx.middlewares.protocol import Next

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("lynx_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` outside a request handled by ``SessionMiddleware``.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Set AppConfig.session_secret (or add "
            "SessionMiddleware) before accessing the session."
        )
        raise LookupError(msg)
    return session


def current_session() -> dict[str, Any] | None:
    """The session dict, or ``None`` when sessions are not enabled."""
    return _session_var.get()


def regenerate_session() -> dict[str, Any]:
    """Clear the session in place and return it.

    Drops everything from the previous session (fixation defence);
    the middleware signs the fresh dict on the way out.
    """
    session = get_session()
    session.clear()
    return session


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration. ``secret_key`` is required."""

    secret_key: str
    cookie_name: str = "lynx_session"
    max_age: int = 86400 * 14
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionMiddleware:
    """Signed cookie session middleware.

    Loads and verifies the cookie, exposes the dict via ``get_session()``,
    then writes it back as a Set-Cookie on every response (which also
    slides the expiry).
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="lynx.session")

    def _load(self, request: Request) -> dict[str, Any]:
        raw = request.cookies.get(self._config.cookie_name)
        if not raw:
            return {}
        try:
            data = self._serializer.loads(raw, max_age=self._config.max_age)
        except BadSignature:
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, response: Response, session: dict[str, Any]) -> Response:
        cfg = self._config
        return response.with_cookie(
            SetCookie(
                name=cfg.cookie_name,
                value=self._serializer.dumps(session),
                max_age=cfg.max_age,
                path=cfg.path,
                secure=cfg.secure,
                httponly=cfg.httponly,
                samesite=cfg.samesite,
            )
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        session = self._load(request)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)
        return self._save(response, session)
