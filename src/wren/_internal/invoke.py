"""Dispatch helper shared by the handler chain.

Middleware and terminal handlers are registered as plain callables; a
``def`` handler answers on the spot, an ``async def`` one hands back a
coroutine. ``Context`` runs every link through ``invoke`` so the chain
loop never has to tell them apart.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* and await its result when it is awaitable.

    ``await invoke(ctx.handlers[i], ctx)`` works for both::

        def hello(ctx):
            ctx.string(200, "hello")

        async def auth(ctx):
            if not ctx.request.headers.get("authorization"):
                ctx.fail(401, "unauthorized")
                return
            await ctx.next()
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
