"""Access logging middleware."""

import logging
import time

from wren._internal.types import HandlerFunc
from wren.context import Context

_log = logging.getLogger("wren.access")


def logger() -> HandlerFunc:
    """Log ``[status] url in <ms>`` after the rest of the chain has run."""

    async def access_log(ctx: Context) -> None:
        start = time.perf_counter()
        await ctx.next()
        elapsed_ms = (time.perf_counter() - start) * 1000
        _log.info("[%d] %s in %.3fms", ctx.writer.status, ctx.request.url, elapsed_ms)

    return access_log
