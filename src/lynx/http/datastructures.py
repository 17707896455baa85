"""Immutable multi-valued mappings: headers, query string, form fields.

All three share one base so ``__getitem__`` returns the first value and
``get_list`` returns every value, whatever the source.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class MultiDict(Mapping[str, str]):
    """Read-only ``str -> [str, ...]`` mapping.

    ``__getitem__`` returns the first value for a key.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        object.__setattr__(self, "_data", data or {})

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, []))

    def to_dict(self) -> dict[str, str | list[str]]:
        """Collapse single values, keep lists for repeated keys."""
        return {k: v[0] if len(v) == 1 else list(v) for k, v in self._data.items()}


class QueryParams(MultiDict):
    """Parsed query string. Keeps the raw bytes for URL rebuilding."""

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qs(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> bytes:
        return self._raw


class Headers(MultiDict):
    """Case-insensitive request headers built from ASGI byte pairs."""

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        data: dict[str, list[str]] = {}
        for name, value in raw:
            data.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        super().__init__(data)
        object.__setattr__(self, "_raw", raw)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return super().get(key.lower(), default)

    def get_list(self, key: str) -> list[str]:
        return super().get_list(key.lower())

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw


def parse_accept_language(header: str | None) -> list[str]:
    """Languages from an ``Accept-Language`` header, best first.

    ``"it-IT,it;q=0.9,en;q=0.5"`` -> ``["it-IT", "it", "en"]``.
    Entries with ``q=0`` are dropped; ``*`` is kept as-is.
    """
    if not header:
        return []
    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        lang, _, params = part.strip().partition(";")
        lang = lang.strip()
        if not lang:
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality > 0:
            weighted.append((-quality, index, lang))
    return [lang for _, _, lang in sorted(weighted)]
