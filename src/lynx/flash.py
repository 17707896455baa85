"""Flash messages — one-shot messages carried in the session.

``flash()`` queues a message; the next ``RenderResponse`` consumes the
queue and exposes it to the template as ``flash``::

    flash("Profile saved", "success")
    return self.redirect("profile")

    {% for message in flash %}<p class="{{ message.type }}">{{ message.message }}</p>{% end %}
"""

from typing import Any

from lynx.middlewares.sessions import current_session, get_session

FLASH_KEY = "_flash"


def flash(message: str, type: str = "info") -> None:  # noqa: A002
    """Queue *message* for the next rendered page.

    Raises ``LookupError`` when sessions are not enabled.
    """
    get_session().setdefault(FLASH_KEY, []).append({"type": type, "message": message})


def peek_flash() -> list[dict[str, Any]]:
    """Pending messages, left in place."""
    session = current_session()
    if session is None:
        return []
    return list(session.get(FLASH_KEY, []))


def consume_flash() -> list[dict[str, Any]]:
    """Pending messages, removed from the session. Empty without sessions."""
    session = current_session()
    if session is None:
        return []
    return list(session.pop(FLASH_KEY, []))
