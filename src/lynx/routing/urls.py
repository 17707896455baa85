"""Route name table and reverse URL generation.

``route("user.detail", {"id": 42, "tab": "info"})`` looks the name up
(an unknown name is used as the URL itself), substitutes ``:id`` in
place and appends the leftover parameters as a query string.
"""

import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import quote

logger = logging.getLogger("lynx.routing")


def _placeholder(key: str) -> re.Pattern[str]:
    return re.compile(rf":{re.escape(key)}(?!\w)(?:\((?:\\.|[^\\()])+\))?\??")


def apply_parameters(url: str, parameters: Mapping[str, Any] | None) -> str:
    """Fill *url* with *parameters*.

    Keys naming a ``:placeholder`` replace it (constraint included);
    the others become ``key=value`` query pairs.
    """
    if not parameters:
        return url
    query: list[str] = []
    for key, value in parameters.items():
        pattern = _placeholder(key)
        text = quote(str(value), safe="")
        if pattern.search(url):
            url = pattern.sub(lambda _m, t=text: t, url, count=1)
        else:
            query.append(f"{key}={text}")
    if query:
        url += ("&" if "?" in url else "?") + "&".join(query)
    return url


class RouteTable:
    """Mapping of route names to URL patterns.

    Filled during registration, read on every URL generation. A
    repeated name overwrites the earlier entry and logs a warning.
    """

    __slots__ = ("_urls",)

    def __init__(self) -> None:
        self._urls: dict[str, str] = {}

    def add(self, name: str, url: str) -> None:
        previous = self._urls.get(name)
        if previous is not None and previous != url:
            logger.warning("Route name %r redefined: %s -> %s", name, previous, url)
        self._urls[name] = url

    def url_for(self, name: str, parameters: Mapping[str, Any] | None = None) -> str:
        return apply_parameters(self._urls.get(name, name), parameters)

    def __contains__(self, name: object) -> bool:
        return name in self._urls

    def __getitem__(self, name: str) -> str:
        return self._urls[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)
