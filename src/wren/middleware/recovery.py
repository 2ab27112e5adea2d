"""Recovery middleware.

Install it first so it wraps everything else: any exception raised
further down the chain is logged with its traceback and answered with
a 500 whose body does not leak the error detail.
"""

import logging
import traceback

from wren._internal.types import HandlerFunc
from wren.context import Context

logger = logging.getLogger("wren.server")


def trace(exc: BaseException) -> str:
    """Describe *exc* and the frames it passed through, innermost last."""
    lines = [f"{type(exc).__name__}: {exc}", "Traceback:"]
    for frame in traceback.extract_tb(exc.__traceback__):
        lines.append(f"\t{frame.filename}:{frame.lineno} in {frame.name}")
    return "\n".join(lines)


def recovery() -> HandlerFunc:
    async def recover(ctx: Context) -> None:
        try:
            await ctx.next()
        except Exception as exc:
            logger.error("%s\n\n", trace(exc))
            ctx.fail(500, "Internal Server Error")

    return recover
