"""Kida environment setup and app binding.

Creates a kida Environment from lynx's AppConfig and binds the
built-in and user-registered filters and globals. The environment is
created once while the app freezes.
"""

from collections.abc import Callable
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader, PackageLoader

from lynx.config import AppConfig
from lynx.templating.filters import BUILTIN_FILTERS


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]],
    globals_: dict[str, Any],
) -> Environment:
    """Create a kida Environment from app configuration.

    Views folders are searched last to first, so a later folder shadows
    an earlier one, then the views shipped with lynx (the default error
    pages).
    """
    loaders: list[Any] = [FileSystemLoader(str(folder)) for folder in reversed(config.views_folders)]
    loaders.append(PackageLoader("lynx", "views"))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )

    env.update_filters(BUILTIN_FILTERS)
    # User filters may override built-ins
    if filters:
        env.update_filters(filters)

    for name, value in globals_.items():
        env.add_global(name, value)

    return env
