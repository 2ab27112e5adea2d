"""Buffered response writer.

The Context writes through a ``ResponseWriter``: the first status
written is committed, later ones are ignored. Headers are frozen once
the status is committed. The ASGI handler sends the buffered result
after the chain finishes.
"""

import logging

logger = logging.getLogger("wren.server")


class ResponseWriter:
    """Collects status, headers, and body bytes for one response."""

    __slots__ = ("_body", "_headers", "_status")

    def __init__(self) -> None:
        self._status: int | None = None
        self._headers: dict[str, str] = {}
        self._body: list[bytes] = []

    @property
    def written(self) -> bool:
        """True once a status code has been committed."""
        return self._status is not None

    @property
    def status(self) -> int:
        return self._status if self._status is not None else 200

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def body(self) -> bytes:
        return b"".join(self._body)

    def set_header(self, name: str, value: str) -> None:
        """Set (replace) a header. No effect once the status is committed."""
        if self.written:
            logger.debug("header %r set after status was written; ignored", name)
            return
        self._headers[name.lower()] = value

    def write_header(self, status: int) -> None:
        """Commit the status line. Only the first call takes effect."""
        if self.written:
            logger.warning("superfluous write_header(%d); status %d already sent", status, self._status)
            return
        self._status = status

    def write(self, data: bytes) -> int:
        """Append body bytes, committing a 200 status if none was written."""
        if not self.written:
            self.write_header(200)
        self._body.append(data)
        return len(data)
