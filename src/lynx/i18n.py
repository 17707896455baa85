"""Translations.

One JSON file per language (``it.json``, ``en.json``...) in each
translation folder; later folders override earlier keys. A key with no
translation is returned unchanged, except that a ``{{key}}`` placeholder
inside it is replaced by the translation of ``key``::

    translate("{{greeting}}, Boris")  ->  "Ciao, Boris"
"""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

logger = logging.getLogger("lynx.i18n")

type Table = dict[str, str]


def load_translations(folders: Iterable[str | Path]) -> dict[str, Table]:
    """Read ``<lang>.json`` files from *folders* into ``{lang: {key: text}}``."""
    tables: dict[str, Table] = {}
    for folder in folders:
        directory = Path(folder)
        if not directory.is_dir():
            logger.warning("Translation folder %s does not exist", directory)
            continue
        for file in sorted(directory.glob("*.json")):
            with file.open(encoding="utf-8") as fh:
                data = json.load(fh)
            tables.setdefault(file.stem, {}).update({str(k): str(v) for k, v in data.items()})
    return tables


def perform_translation(text: str, table: Mapping[str, str] | None) -> str:
    if not table:
        return text
    translation = table.get(text)
    if translation:
        return translation
    start = text.find("{{")
    end = text.find("}}")
    if start != -1 and end != -1 and end > start:
        key = text[start + 2 : end]
        replacement = table.get(key.strip())
        if replacement is not None:
            return text.replace("{{" + key + "}}", replacement, 1)
    return text


def choose_language(accepted: Iterable[str], available: Iterable[str], default: str) -> str:
    """First accepted language we have a table for, else *default*.

    ``it-IT`` falls back to ``it`` when only the base language exists.
    """
    known = set(available)
    for lang in accepted:
        if lang == "*":
            continue
        if lang in known:
            return lang
        base = lang.split("-")[0]
        if base in known:
            return base
    return default
