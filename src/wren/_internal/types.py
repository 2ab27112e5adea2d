"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Middleware or terminal handler: receives the request Context.
# May be ``def`` or ``async def``; middleware that hands off control
# must be ``async def`` so it can ``await ctx.next()``.
HandlerFunc: TypeAlias = Callable[[Any], Any]
