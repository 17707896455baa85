"""Request body parsing — URL-encoded and multipart forms.

Multipart bodies go through ``python-multipart``'s callback parser;
uploaded files are kept in memory as ``UploadFile`` objects.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header

from lynx.http.datastructures import MultiDict


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file received through a multipart form."""

    filename: str
    content_type: str
    size: int
    content: bytes

    async def read(self) -> bytes:
        return self.content

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(MultiDict):
    """Parsed form fields plus uploaded files by field name."""

    __slots__ = ("_files",)

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, list[UploadFile]] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """First uploaded file for each field."""
        return {name: uploads[0] for name, uploads in self._files.items() if uploads}

    def get_files(self, name: str) -> list[UploadFile]:
        return list(self._files.get(name, []))


def is_form_content_type(content_type: str | None) -> bool:
    main = (content_type or "").split(";")[0].strip().lower()
    return main in ("application/x-www-form-urlencoded", "multipart/form-data")


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body.

    Raises:
        ValueError: If the content type is not a form encoding or a
            multipart body has no boundary.
    """
    main = content_type.split(";")[0].strip().lower()
    if main == "application/x-www-form-urlencoded":
        return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))
    if main == "multipart/form-data":
        return _parse_multipart(body, content_type)
    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    fields: dict[str, list[str]] = {}
    files: dict[str, list[UploadFile]] = {}
    part: dict[str, Any] = {}
    header_name = ""

    def on_part_begin() -> None:
        part.clear()
        part.update(headers={}, data=bytearray(), name=None, filename=None)

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part["data"].extend(chunk[start:end])

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        nonlocal header_name
        header_name = chunk[start:end].decode("latin-1").lower()

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        value = chunk[start:end].decode("latin-1")
        part["headers"][header_name] = value
        if header_name == "content-disposition":
            _, params = parse_options_header(value.encode("latin-1"))
            if b"name" in params:
                part["name"] = params[b"name"].decode("utf-8")
            if b"filename" in params:
                part["filename"] = params[b"filename"].decode("utf-8")

    def on_part_end() -> None:
        name = part.get("name")
        if name is None:
            return
        content = bytes(part["data"])
        if part["filename"] is not None:
            upload = UploadFile(
                filename=part["filename"],
                content_type=part["headers"].get("content-type", "application/octet-stream"),
                size=len(content),
                content=content,
            )
            files.setdefault(name, []).append(upload)
        else:
            fields.setdefault(name, []).append(content.decode("utf-8", errors="replace"))

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
        },
    )
    parser.write(body)
    parser.finalize()
    return FormData(fields, files)
