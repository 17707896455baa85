"""ASGI response sending — translates a lynx Response to ASGI messages."""

from lynx._internal.asgi import Send
from lynx.http.response import Response


def _status_allows_body(status: int) -> bool:
    # 1xx, 204 and 304 never carry a body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Translate *response* into ``http.response.start`` + one body message.

    HEAD answers keep the ``content-length`` of the body they omit.
    """
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )

    body = response.body_bytes if _status_allows_body(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    if method == "HEAD":
        body = b""

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
