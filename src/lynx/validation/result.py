"""ValidateObject — the body a ``@body`` route handler receives.

Validation never raises: the handler decides what an invalid body
means::

    @body("user", {"email": [required, email]})
    @post("/users")
    async def create(self, user: ValidateObject, request, res):
        if not user.is_valid:
            return self.render("users/new", request, {"errors": user.errors_map})
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from lynx.validation.messages import pick_locale, render_message
from lynx.validation.rules import Rule

type Schema = Mapping[str, Sequence[Rule]]


@dataclass(frozen=True, slots=True)
class ValidationError:
    """One failed field: its name and a localized message."""

    name: str
    message: str


class ValidateObject[T]:
    """Wraps *obj* together with the outcome of validating it.

    Each field reports its first failing rule. Keys the schema does not
    mention are left alone.
    """

    __slots__ = ("_errors", "_locale", "_obj")

    def __init__(self, obj: T, schema: Schema | None, locales: Sequence[str] = ()) -> None:
        self._obj = obj
        self._locale = pick_locale(list(locales))
        self._errors = self._validate(obj, schema or {})

    def _validate(self, obj: Any, schema: Schema) -> tuple[ValidationError, ...]:
        if not isinstance(obj, Mapping):
            obj = {}
        errors: list[ValidationError] = []
        for field_name, rules in schema.items():
            value = obj.get(field_name)
            for rule in rules:
                failure = rule(value)
                if failure is not None:
                    text = render_message(failure.code, failure.params, self._locale)
                    errors.append(ValidationError(field_name, f"{field_name} {text}"))
                    break
        return tuple(errors)

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def obj(self) -> T:
        """The unwrapped object, valid or not."""
        return self._obj

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def errors(self) -> list[ValidationError]:
        return list(self._errors)

    @property
    def errors_map(self) -> dict[str, str]:
        """``{field: message}`` view of ``errors``."""
        return {e.name: e.message for e in self._errors}

    def __bool__(self) -> bool:
        return self.is_valid

    def __repr__(self) -> str:
        return f"ValidateObject(valid={self.is_valid}, errors={self.errors_map!r})"
