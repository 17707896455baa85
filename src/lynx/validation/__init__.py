"""Body validation — composable rules, localized results.

Usage::

    from lynx.validation import ValidateObject, email, max_length, required

    result = ValidateObject(
        {"title": "", "email": "nope"},
        {"title": [required, max_length(200)], "email": [required, email]},
        request.accepts_languages(),
    )
    result.is_valid      # False
    result.errors_map    # {"title": "title is required", "email": ...}
"""

from lynx.validation.result import Schema, ValidateObject, ValidationError
from lynx.validation.rules import (
    Rule,
    RuleError,
    email,
    integer,
    matches,
    max_length,
    max_value,
    min_length,
    min_value,
    number,
    one_of,
    required,
    url,
)

__all__ = [
    "Rule",
    "RuleError",
    "Schema",
    "ValidateObject",
    "ValidationError",
    "email",
    "integer",
    "matches",
    "max_length",
    "max_value",
    "min_length",
    "min_value",
    "number",
    "one_of",
    "required",
    "url",
]
