"""Localized validation messages, keyed by rule error code."""

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "any.required": "is required",
        "any.allowOnly": "must be one of {valids}",
        "string.base": "must be a string",
        "string.min": "length must be at least {limit} characters long",
        "string.max": "length must be less than or equal to {limit} characters long",
        "string.email": "must be a valid email",
        "string.uri": "must be a valid uri",
        "string.regex.base": "fails to match the required pattern: {pattern}",
        "number.base": "must be a number",
        "number.integer": "must be an integer",
        "number.min": "must be larger than or equal to {limit}",
        "number.max": "must be less than or equal to {limit}",
    },
    "it": {
        "any.required": "è richiesto",
        "any.allowOnly": "deve essere uno di {valids}",
        "string.base": "deve essere una stringa",
        "string.min": "deve contenere almeno {limit} caratteri",
        "string.max": "deve contenere al massimo {limit} caratteri",
        "string.email": "deve essere un indirizzo email valido",
        "string.uri": "deve essere un indirizzo valido",
        "string.regex.base": "non corrisponde al formato richiesto: {pattern}",
        "number.base": "deve essere un numero",
        "number.integer": "deve essere un intero",
        "number.min": "deve essere maggiore o uguale a {limit}",
        "number.max": "deve essere minore o uguale a {limit}",
    },
}

DEFAULT_LOCALE = "en"


def pick_locale(locales: list[str] | tuple[str, ...]) -> str:
    """First supported entry of *locales*, in client preference order.

    An entry mentioning English wins immediately, as does Italian;
    anything else is skipped. Falls back to English.
    """
    for locale in locales:
        if "en" in locale.lower():
            return "en"
        if locale.split("-")[0].lower() == "it":
            return "it"
    return DEFAULT_LOCALE


def render_message(code: str, params: dict[str, object], locale: str) -> str:
    table = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    template = table.get(code) or MESSAGES[DEFAULT_LOCALE].get(code, code)
    return template.format(**params)
