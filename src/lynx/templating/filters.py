"""Built-in lynx template filters and globals.

Filters are plain functions. Those that need the language or the
request read it from the current request, so they also work (with the
default language) when a template renders outside one, e.g. for mail.
"""

import json
from datetime import date as date_type
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kida.template import Markup

from lynx.context import current_request

if TYPE_CHECKING:
    from lynx.app import App

DEFAULT_DATE_FORMAT = "%b %d, %Y %I:%M %p"


def tr(text: Any) -> str:
    """Translate *text* into the current request's language.

    Example:
        <h1>{{ "welcome" | tr }}</h1>
    """
    request = current_request()
    if request is None or request.app is None:
        return str(text)
    return request.app.translate(str(text), request)


def json_filter(value: Any) -> Markup:
    """Serialize *value* as JSON for inline ``<script>`` blocks."""
    payload = json.dumps(value, default=str)
    return Markup(payload.replace("</", "<\\/"))


def format_number(value: Any, decimals: int = 2) -> str:
    """Fixed-point formatting.

    Example:
        {{ price | format }}     → "12.50"
        {{ ratio | format(3) }}  → "0.333"
    """
    return f"{float(value):.{decimals}f}"


def format_date(value: Any, format: str | None = None) -> str:  # noqa: A002
    """Format a ``date``/``datetime`` (or ISO string) with ``strftime``."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    elif isinstance(value, int | float):
        value = datetime.fromtimestamp(value)
    if not isinstance(value, date_type):
        return str(value)
    return value.strftime(format or DEFAULT_DATE_FORMAT)


def old(name: str, default: Any = "") -> Any:
    """Previous value of a form field: parsed body first, then query string.

    Example:
        <input name="email" value="{{ old("email") }}">
    """
    request = current_request()
    if request is None:
        return default
    body = request.lynx.body
    if isinstance(body, dict) and body.get(name):
        return body[name]
    value = request.query.get(name)
    if value:
        return value
    return default


def build_template_map(folders: tuple[str | Path, ...], extension: str) -> dict[str, str]:
    """Map ``/virtual/path`` (no extension) to loader template names.

    Later folders win, mirroring the lookup order of the loader chain
    they shadow.
    """
    mapping: dict[str, str] = {}
    for folder in folders:
        root = Path(folder)
        if not root.is_dir():
            continue
        for file in sorted(root.rglob(f"*{extension}")):
            relative = file.relative_to(root).as_posix()
            mapping["/" + relative.removesuffix(extension)] = relative
    return mapping


def app_globals(app: App) -> dict[str, Any]:
    """Globals bound to *app*: ``route``, ``old`` and ``resolve_path``."""
    extension = app.config.template_extension

    def route(name: str, parameters: dict[str, Any] | None = None) -> str:
        return app.route(name, parameters)

    def resolve_path(path: str) -> str:
        key = path.removesuffix(extension)
        return app.template_map.get(key, path)

    return {"route": route, "old": old, "resolve_path": resolve_path}


BUILTIN_FILTERS: dict[str, Any] = {
    "date": format_date,
    "format": format_number,
    "json": json_filter,
    "tr": tr,
}
