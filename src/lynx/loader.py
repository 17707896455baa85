"""Controller and middleware discovery.

Walks a folder tree (sorted, so startup order is deterministic) and
imports every ``.py`` file not starting with ``_``. Each file must
define at least one class of the expected kind, and each such class
must carry its decorator:

- controllers subclass ``BaseController`` and use ``@route(base_path)``
- middlewares subclass ``BaseMiddleware`` and use ``@middleware(path)``

Anything else is a ``ConfigurationError``. Classes whose name starts
with ``_`` are treated as private helpers and skipped.
"""

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from types import ModuleType
from typing import Any

from lynx.controller import BaseController
from lynx.decorators import controller_descriptor, middleware_descriptor
from lynx.errors import ConfigurationError
from lynx.middlewares.base import BaseMiddleware

logger = logging.getLogger("lynx.loader")


def iter_module_files(folder: str | Path) -> Iterator[Path]:
    """``.py`` files under *folder*, depth first, in sorted order."""
    root = Path(folder)
    if not root.is_dir():
        msg = f"Folder not found: {root}"
        raise ConfigurationError(msg)
    for entry in sorted(root.iterdir()):
        if entry.name.startswith(("_", ".")):
            continue
        if entry.is_dir():
            yield from iter_module_files(entry)
        elif entry.suffix == ".py":
            yield entry


def load_module(file: Path, prefix: str) -> ModuleType:
    module_name = f"_lynx_{prefix}_{file.stem}_{abs(hash(file.resolve()))}"
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {file}"
        raise ConfigurationError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def _defined_classes(module: ModuleType, base: type) -> list[type]:
    # Module namespace order is definition order.
    return [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and obj.__module__ == module.__name__
        and issubclass(obj, base)
        and obj is not base
    ]


def _discover(
    folder: str | Path,
    *,
    kind: str,
    base: type,
    descriptor: Callable[[type], Any],
    decorator: str,
) -> list[type]:
    found: list[type] = []
    for file in iter_module_files(folder):
        module = load_module(file, kind)
        classes = [c for c in _defined_classes(module, base) if not c.__name__.startswith("_")]
        if not classes:
            msg = f"{file} does not define a {base.__name__} subclass."
            raise ConfigurationError(msg)
        for cls in classes:
            if descriptor(cls) is None:
                msg = f"{cls.__name__} in {file} is missing its @{decorator} decorator."
                raise ConfigurationError(msg)
            logger.debug("Discovered %s %s in %s", kind, cls.__name__, file)
            found.append(cls)
    return found


def discover_controllers(folder: str | Path) -> list[type[BaseController]]:
    """Controller classes under *folder*, in file order."""
    return _discover(
        folder,
        kind="controller",
        base=BaseController,
        descriptor=controller_descriptor,
        decorator="route",
    )


def discover_middlewares(folder: str | Path) -> list[type[BaseMiddleware]]:
    """Middleware classes under *folder*, in file order."""
    return _discover(
        folder,
        kind="middleware",
        base=BaseMiddleware,
        descriptor=middleware_descriptor,
        decorator="middleware",
    )
