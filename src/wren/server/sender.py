"""ASGI response sending: turns a ResponseWriter into ASGI messages."""

from wren._internal.asgi import Send
from wren.http.response import ResponseWriter


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(writer: ResponseWriter, send: Send) -> None:
    """Send the buffered status, headers, and body in two ASGI messages."""
    status = writer.status
    body = writer.body if _body_allowed(status) else b""

    raw_headers: list[tuple[bytes, bytes]] = [
        (name.encode("latin-1"), value.encode("latin-1"))
        for name, value in writer.headers.items()
        if name != "content-length"
    ]
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})
