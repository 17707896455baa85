"""Reusable bundles of controllers, middlewares, views and translations.

A module contributes folders to the app's configuration. Mounting it
prepends each folder, so the app's own folders load last and their
views and translations win::

    app = App(config, modules=[AdminModule(), BlogModule()])
"""

from dataclasses import replace
from pathlib import Path

from lynx.config import AppConfig


class BaseModule:
    """Override the folder properties a module provides."""

    @property
    def controllers(self) -> str | Path | None:
        return None

    @property
    def middlewares(self) -> str | Path | None:
        return None

    @property
    def translation(self) -> str | Path | None:
        return None

    @property
    def views(self) -> str | Path | None:
        return None

    @property
    def public(self) -> str | Path | None:
        return None

    def mount(self, config: AppConfig) -> AppConfig:
        """Return *config* with this module's folders in front."""

        def prepend(folder: str | Path | None, current: tuple[str | Path, ...]) -> tuple[str | Path, ...]:
            return current if folder is None else (folder, *current)

        return replace(
            config,
            controllers_folders=prepend(self.controllers, config.controllers_folders),
            middlewares_folders=prepend(self.middlewares, config.middlewares_folders),
            translation_folders=prepend(self.translation, config.translation_folders),
            views_folders=prepend(self.views, config.views_folders),
            public_folders=prepend(self.public, config.public_folders),
        )


class SimpleModule(BaseModule):
    """A module laid out like an app: ``controllers/``, ``middlewares/``,
    ``locale/``, ``views/`` and ``public/`` under *base_path*.

    Missing subfolders are skipped.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)

    def _folder(self, name: str) -> Path | None:
        folder = self.base_path / name
        return folder if folder.is_dir() else None

    @property
    def controllers(self) -> Path | None:
        return self._folder("controllers")

    @property
    def middlewares(self) -> Path | None:
        return self._folder("middlewares")

    @property
    def translation(self) -> Path | None:
        return self._folder("locale")

    @property
    def views(self) -> Path | None:
        return self._folder("views")

    @property
    def public(self) -> Path | None:
        return self._folder("public")
