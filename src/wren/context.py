"""Per-request Context and the middleware chain.

A ``Context`` is created for every request. It holds the matched path
parameters, the ordered handler chain (group middleware followed by
exactly one terminal handler), and a cursor into that chain.

Onion model::

    async def timing(ctx):
        start = time.monotonic()     # runs on the way in
        await ctx.next()             # everything after this link runs here
        elapsed = time.monotonic() - start   # runs on the way out

``current_context`` exposes the in-flight Context to helpers that are
not handed one explicitly. ``ContextVar`` is task-local under asyncio,
so concurrent requests never see each other's context.
"""

from __future__ import annotations

import json as json_module
import logging
from collections.abc import Coroutine
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from wren._internal.invoke import invoke
from wren._internal.types import HandlerFunc
from wren.http.request import Request
from wren.http.response import ResponseWriter

logger = logging.getLogger("wren")

if TYPE_CHECKING:
    from wren.app import Engine

# Structured payload shorthand: ctx.json(200, H(message="ok"))
H = dict[str, Any]

current_context: ContextVar[Context] = ContextVar("wren_context")
"""The Context being dispatched. Set by the ASGI handler."""


def get_context() -> Context:
    """Return the current request Context.

    Raises ``LookupError`` if called outside a request.
    """
    return current_context.get()


class Context:
    """Mutable state for one request.

    ``handlers`` is assembled before dispatch starts and only the
    cursor moves while it runs. The context belongs to a single
    request and is dropped once the response has been sent.
    """

    __slots__ = (
        "_aborted",
        "_index",
        "_unawaited",
        "engine",
        "handlers",
        "keys",
        "method",
        "params",
        "path",
        "request",
        "status_code",
        "writer",
    )

    def __init__(
        self,
        request: Request,
        writer: ResponseWriter | None = None,
        *,
        handlers: list[HandlerFunc] | None = None,
        engine: Engine | None = None,
    ) -> None:
        self.request = request
        self.writer = writer if writer is not None else ResponseWriter()
        self.path = request.path
        self.method = request.method
        # Filled by the router on a match; absent names stay absent
        self.params: dict[str, str] = {}
        self.handlers: list[HandlerFunc] = list(handlers or ())
        self.status_code: int | None = None
        self.keys: dict[str, Any] = {}
        self.engine = engine
        self._index = -1
        self._aborted = False
        self._unawaited: dict[object, Coroutine[Any, Any, None]] = {}

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.path} index={self._index}/{len(self.handlers)}>"

    # -- Chain control --

    @property
    def index(self) -> int:
        """Position of the running handler; ``-1`` before dispatch."""
        return self._index

    @property
    def is_aborted(self) -> bool:
        return self._aborted

    def next(self) -> Coroutine[Any, Any, None]:
        """Run the remaining handlers in the chain. Must be awaited.

        Each handler may ``await ctx.next()`` itself; code before that
        call runs in registration order, code after it in reverse order.
        When a handler returns, the loop moves on to whatever link the
        cursor points at next.
        """
        token = object()
        step = self._advance(token)
        self._unawaited[token] = step
        return step

    async def _advance(self, token: object) -> None:
        self._unawaited.pop(token, None)
        self._index += 1
        while self._index < len(self.handlers):
            handler = self.handlers[self._index]
            await invoke(handler, self)
            if self._unawaited:
                self._drop_unawaited(handler)
            self._index += 1

    def _drop_unawaited(self, handler: HandlerFunc) -> None:
        # A sync handler called ctx.next() and returned; its "after" code
        # already ran before the rest of the chain.
        for step in self._unawaited.values():
            step.close()
        self._unawaited.clear()
        logger.warning(
            "%s called ctx.next() without awaiting it, so its code after next() "
            "ran before the handlers that follow it. Declare it 'async def' and "
            "use 'await ctx.next()'.",
            getattr(handler, "__qualname__", repr(handler)),
        )

    def abort(self) -> None:
        """Stop the chain: no handler after the current one will run."""
        self._index = len(self.handlers)
        self._aborted = True

    def fail(self, code: int, message: str) -> None:
        """Stop the chain and respond with ``{"message": message}``."""
        self.abort()
        self.json(code, {"message": message})

    # -- Request data --

    def param(self, key: str) -> str:
        """Path parameter captured by ``:key`` or ``*key``, or ``""``."""
        return self.params.get(key, "")

    def query(self, key: str) -> str:
        """First query string value for *key*, or ``""``."""
        return self.request.query.get(key, "")

    async def post_form(self, key: str) -> str:
        """First URL-encoded form value for *key*, or ``""``."""
        form = await self.request.form()
        return form.get(key, "")

    def set(self, key: str, value: Any) -> None:
        """Store a value for later handlers in this request."""
        self.keys[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.keys.get(key, default)

    # -- Response writing --

    def status(self, code: int) -> None:
        """Record *code* and commit it as the response status."""
        self.status_code = code
        self.writer.write_header(code)

    def set_header(self, key: str, value: str) -> None:
        self.writer.set_header(key, value)

    def string(self, code: int, fmt: str, *values: Any) -> None:
        """Plain-text response. ``fmt`` uses ``%`` formatting when values are given."""
        self.set_header("Content-Type", "text/plain; charset=utf-8")
        self.status(code)
        text = fmt % values if values else fmt
        self.writer.write(text.encode("utf-8"))

    def json(self, code: int, obj: Any) -> None:
        """JSON response for any JSON-serializable value."""
        try:
            payload = json_module.dumps(obj).encode("utf-8")
        except (TypeError, ValueError) as exc:
            self.set_header("Content-Type", "text/plain; charset=utf-8")
            self.status(500)
            self.writer.write(str(exc).encode("utf-8"))
            return
        self.set_header("Content-Type", "application/json")
        self.status(code)
        self.writer.write(payload)

    def data(self, code: int, data: bytes) -> None:
        """Raw bytes response; sets no content type."""
        self.status(code)
        self.writer.write(data)

    def html(self, code: int, name: str, data: Any = None) -> None:
        """Render template *name* with *data* through the engine's kida environment.

        Rendering errors are answered with ``fail(500, <error text>)``.
        """
        if self.engine is None:
            msg = "Context has no engine; cannot render templates."
            raise RuntimeError(msg)
        try:
            body = self.engine.render(name, data)
        except Exception as exc:
            self.fail(500, str(exc))
            return
        self.set_header("Content-Type", "text/html; charset=utf-8")
        self.status(code)
        self.writer.write(body.encode("utf-8"))
