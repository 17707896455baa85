"""File storage abstraction (UFS) and stored-media references.

``FileResponse`` and ``BaseController.download`` only talk to a
``UFS``; ``LocalUFS`` keeps everything under ``AppConfig.upload_path``.
Disk I/O runs through ``anyio`` so the event loop never blocks.
"""

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import anyio

from lynx.http.forms import UploadFile


@dataclass(frozen=True, slots=True)
class FileStat:
    size: int


@dataclass(frozen=True, slots=True)
class Media:
    """A stored file (or folder) as seen by the application."""

    path: str
    original_name: str = ""
    mimetype: str | None = None
    size: int | None = None
    is_directory: bool = False

    @property
    def file_name(self) -> str:
        return Path(self.path).name


@runtime_checkable
class UFS(Protocol):
    """Storage back end contract."""

    async def unlink(self, path: str) -> None: ...
    async def stat(self, path: str) -> FileStat: ...
    async def get_to_cache(self, path: str, cache_path: str | Path) -> str: ...
    async def upload_file(self, upload: UploadFile) -> Media: ...
    async def upload_file_from_cache(self, path: str, cache_path: str | Path) -> None: ...


class LocalUFS:
    """Files stored on the local disk under *upload_path*.

    ``get_to_cache`` needs no copy: local files are already readable,
    so it just returns their absolute location.
    """

    __slots__ = ("_root",)

    def __init__(self, upload_path: str | Path) -> None:
        self._root = Path(upload_path)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> anyio.Path:
        target = (self._root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self._root.resolve()):
            msg = f"Path escapes the upload folder: {path!r}"
            raise ValueError(msg)
        return anyio.Path(target)

    async def unlink(self, path: str) -> None:
        await self._resolve(path).unlink()

    async def stat(self, path: str) -> FileStat:
        result = await self._resolve(path).stat()
        return FileStat(size=result.st_size)

    async def get_to_cache(self, path: str, cache_path: str | Path) -> str:  # noqa: ARG002
        return str(self._resolve(path))

    async def upload_file(self, upload: UploadFile) -> Media:
        """Store *upload* under a fresh unique name."""
        suffix = Path(upload.filename).suffix
        stored = f"{uuid.uuid4().hex}{suffix}"
        target = self._resolve(stored)
        await target.parent.mkdir(parents=True, exist_ok=True)
        await target.write_bytes(upload.content)
        return Media(
            path=stored,
            original_name=upload.filename,
            mimetype=upload.content_type,
            size=upload.size,
        )

    async def upload_file_from_cache(self, path: str, cache_path: str | Path) -> None:
        """Copy ``cache_path/path`` into the upload folder."""
        data = await anyio.Path(Path(cache_path) / path).read_bytes()
        target = self._resolve(path)
        await target.parent.mkdir(parents=True, exist_ok=True)
        await target.write_bytes(data)
