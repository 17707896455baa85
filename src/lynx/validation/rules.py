"""Built-in validation rules.

Each rule is a callable with the signature::

    def rule(value: Any) -> RuleError | None:
        '''Return an error, or None if valid.'''

Errors carry a message code and its parameters rather than text, so
the same schema can report in any supported language (see
``lynx.validation.messages``). Parameterized rules are factories.

Only ``required`` fails on a missing value; every other rule lets a
missing (``None`` or empty string) value through.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class RuleError:
    code: str
    params: dict[str, Any] = field(default_factory=dict)


type Rule = Callable[[Any], RuleError | None]


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> RuleError | None:
    """Value must be present and, for strings, not blank."""
    if is_missing(value):
        return RuleError("any.required")
    return None


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def min_length(n: int) -> Rule:
    def check(value: Any) -> RuleError | None:
        if is_missing(value):
            return None
        if not isinstance(value, str):
            return RuleError("string.base")
        if len(value) < n:
            return RuleError("string.min", {"limit": n})
        return None

    return check


def max_length(n: int) -> Rule:
    def check(value: Any) -> RuleError | None:
        if is_missing(value):
            return None
        if not isinstance(value, str):
            return RuleError("string.base")
        if len(value) > n:
            return RuleError("string.max", {"limit": n})
        return None

    return check


# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def email(value: Any) -> RuleError | None:
    if is_missing(value):
        return None
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return RuleError("string.email")
    return None


def url(value: Any) -> RuleError | None:
    if is_missing(value):
        return None
    if not isinstance(value, str) or not _URL_RE.match(value):
        return RuleError("string.uri")
    return None


def matches(pattern: str, *, code: str = "string.regex.base") -> Rule:
    """Value must match *pattern* (full match)."""
    compiled = re.compile(pattern)

    def check(value: Any) -> RuleError | None:
        if is_missing(value):
            return None
        if not isinstance(value, str) or not compiled.fullmatch(value):
            return RuleError(code, {"pattern": pattern})
        return None

    return check


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def number(value: Any) -> RuleError | None:
    if is_missing(value):
        return None
    if _as_number(value) is None:
        return RuleError("number.base")
    return None


def integer(value: Any) -> RuleError | None:
    if is_missing(value):
        return None
    parsed = _as_number(value)
    if parsed is None:
        return RuleError("number.base")
    if not parsed.is_integer():
        return RuleError("number.integer")
    return None


def min_value(limit: float) -> Rule:
    def check(value: Any) -> RuleError | None:
        parsed = None if is_missing(value) else _as_number(value)
        if parsed is not None and parsed < limit:
            return RuleError("number.min", {"limit": limit})
        return None

    return check


def max_value(limit: float) -> Rule:
    def check(value: Any) -> RuleError | None:
        parsed = None if is_missing(value) else _as_number(value)
        if parsed is not None and parsed > limit:
            return RuleError("number.max", {"limit": limit})
        return None

    return check


# ---------------------------------------------------------------------------
# Choices
# ---------------------------------------------------------------------------


def one_of(choices: Iterable[Any]) -> Rule:
    allowed = tuple(choices)

    def check(value: Any) -> RuleError | None:
        if is_missing(value):
            return None
        if value not in allowed:
            return RuleError("any.allowOnly", {"valids": ", ".join(map(str, allowed))})
        return None

    return check
