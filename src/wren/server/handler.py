"""ASGI handler: the only component that touches raw HTTP scopes.

Builds the Request and Context, lets the router run the chain, and
sends whatever the chain wrote.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wren._internal.asgi import Receive, Scope, Send
from wren.context import Context, current_context
from wren.http.request import Request
from wren.server.sender import send_response

if TYPE_CHECKING:
    from wren.app import Engine

logger = logging.getLogger("wren.server")


async def handle_request(scope: Scope, receive: Receive, send: Send, *, engine: Engine) -> None:
    """Process a single HTTP request through middleware and routing."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    ctx = Context(request, handlers=engine.middleware_for(request.path), engine=engine)
    token = current_context.set(ctx)

    try:
        await engine.router.handle(ctx)
    except Exception:
        # No recovery middleware caught this; answer like a bare server would
        logger.exception("500 %s %s", request.method, request.path)
        if not ctx.writer.written:
            ctx.string(500, "Internal Server Error")
    finally:
        current_context.reset(token)

    await send_response(ctx.writer, send)
