"""Middleware: plain handlers that ``await ctx.next()``.

A middleware is any callable taking the request Context::

    async def mw(ctx: Context) -> None:
        ...                 # before the rest of the chain
        await ctx.next()
        ...                 # after the rest of the chain

Built-in middleware:
    logger -- Access log line per request
    recovery -- Turn unhandled exceptions into a 500 JSON response
    StaticFiles -- File-serving terminal handler behind ``static()``
"""

from wren.middleware.access import logger
from wren.middleware.recovery import recovery, trace
from wren.middleware.static import StaticFiles

__all__ = ["StaticFiles", "logger", "recovery", "trace"]
