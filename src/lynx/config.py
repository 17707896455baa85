"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. Collaborators (storage, mail, user loading,
API envelopes) are plugged in here as plain objects or callables.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lynx.api import APIResponseWrapper
    from lynx.mail import MailClient
    from lynx.storage import UFS


def is_production() -> bool:
    """True when ``LYNX_ENV`` is set to ``production``."""
    return os.environ.get("LYNX_ENV", "") == "production"


@dataclass(frozen=True, slots=True)
class MailerConfig:
    """SMTP settings used by the default mail client."""

    sender: str = "lynx@localhost"
    host: str = "localhost"
    port: int = 25
    user: str | None = None
    password: str | None = None
    use_tls: bool = False


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    Override what you need::

        config = AppConfig(
            controllers_folders=("app/controllers",),
            views_folders=("app/views",),
            session_secret="s3cr3t",
        )
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Folders scanned at startup
    public_folders: tuple[str | Path, ...] = ()
    views_folders: tuple[str | Path, ...] = ()
    translation_folders: tuple[str | Path, ...] = ()
    middlewares_folders: tuple[str | Path, ...] = ()
    controllers_folders: tuple[str | Path, ...] = ()

    # Secrets
    session_secret: str = ""
    token_secret: str = ""

    # Sessions
    session_cookie: str = "lynx_session"
    session_max_age: int = 86400 * 14

    # Language
    default_language: str = "it"

    # Files
    upload_path: str | Path = "uploads"
    cache_path: str | Path = "cache"
    caching_images: bool = False
    ufs: UFS | None = None
    resizer: Callable[..., Any] | None = None

    # Request bodies: JSON is capped at json_limit, anything else at max_content_length
    json_limit: int = 100 * 1024
    max_content_length: int = 16 * 1024 * 1024

    # Mail
    mailer: MailerConfig = field(default_factory=MailerConfig)
    mail_client: MailClient | None = None

    # Templates
    template_extension: str = ".html"
    autoescape: bool = True

    # CORS on /api/*
    cors_enabled: bool = True
    cors_origins: tuple[str, ...] = ("*",)

    # Authentication: user id -> user object (sync or async)
    load_user: Callable[[Any], Any] | None = None

    # Pluggable behaviour
    api_response_wrapper: APIResponseWrapper | None = None
    error_controller: Callable[..., Any] | None = None
    global_interceptors: tuple[Callable[..., Any], ...] = ()
    before_perform_response_interceptors: tuple[Callable[..., Any], ...] = ()

    @property
    def production(self) -> bool:
        """Whether error pages hide details."""
        return is_production()

    @classmethod
    def from_base_path(cls, base_path: str | Path, **overrides: Any) -> AppConfig:
        """Build a config from the conventional project layout.

        Every existing subfolder among ``public``, ``views``, ``locale``,
        ``middlewares`` and ``controllers`` is picked up.
        """
        base = Path(base_path)

        def folders(name: str) -> tuple[Path, ...]:
            candidate = base / name
            return (candidate,) if candidate.is_dir() else ()

        config = cls(
            public_folders=folders("public"),
            views_folders=folders("views"),
            translation_folders=folders("locale"),
            middlewares_folders=folders("middlewares"),
            controllers_folders=folders("controllers"),
            upload_path=base / "uploads",
            cache_path=base / "cache",
        )
        return replace(config, **overrides) if overrides else config
