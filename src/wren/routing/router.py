"""Router with one segment trie per HTTP method.

Routes are registered during setup and frozen when the engine serves
its first request. Lookups are read-only and safe to run concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wren._internal.types import HandlerFunc
from wren.errors import ConfigurationError, RouteConflictError
from wren.routing.trie import Node, is_wild

if TYPE_CHECKING:
    from wren.context import Context

logger = logging.getLogger("wren.routing")


def split_path(path: str) -> list[str]:
    """Split a request path into its non-empty segments."""
    return [part for part in path.split("/") if part]


def parse_pattern(pattern: str) -> list[str]:
    """Split a route pattern into trie segments.

    Stops after the first ``*`` segment: a wildcard always captures the
    rest of the path.

    Examples::

        "/"                    -> []
        "/users/:id"           -> ["users", ":id"]
        "/assets/*filepath"    -> ["assets", "*filepath"]
    """
    parts: list[str] = []
    for part in split_path(pattern):
        parts.append(part)
        if part.startswith("*"):
            break
    return parts


def _validate_pattern(pattern: str) -> None:
    if not pattern.startswith("/"):
        msg = f"Route pattern {pattern!r} must start with '/'."
        raise ConfigurationError(msg)

    segments = split_path(pattern)
    for index, part in enumerate(segments):
        if part == ":":
            msg = f"Route pattern {pattern!r} has a ':' segment without a name."
            raise ConfigurationError(msg)
        if part.startswith("*") and index != len(segments) - 1:
            msg = (
                f"Route pattern {pattern!r} has segments after wildcard {part!r}. "
                "A '*' segment must be the last one."
            )
            raise ConfigurationError(msg)


def _not_found(ctx: Context) -> None:
    ctx.string(404, "404 NOT FOUND: %s\n", ctx.path)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route lookup."""

    node: Node
    params: dict[str, str]

    @property
    def pattern(self) -> str:
        return self.node.pattern


class Router:
    """Maps ``(method, path)`` to registered handlers.

    Usage::

        router = Router()
        router.add_route("GET", "/hello/:name", hello)
        router.add_route("GET", "/assets/*filepath", assets)
        match = router.get_route("GET", "/hello/world")
        match.params  # {"name": "world"}
    """

    __slots__ = ("_compiled", "_routes", "handlers", "roots")

    def __init__(self) -> None:
        self.roots: dict[str, Node] = {}
        # "GET-/hello/:name" -> handler
        self.handlers: dict[str, HandlerFunc] = {}
        self._routes: dict[tuple[str, str], None] = {}
        self._compiled = False

    def add_route(self, method: str, pattern: str, handler: HandlerFunc) -> None:
        """Register *handler* for *method* and *pattern*.

        Registering the same method and pattern again replaces the handler.

        Raises ``ConfigurationError`` for malformed patterns and
        ``RouteConflictError`` when a wild segment would alias an existing
        one with a different name.
        """
        if self._compiled:
            msg = "Cannot add routes after the router is compiled."
            raise RuntimeError(msg)
        _validate_pattern(pattern)

        root = self.roots.get(method)
        if root is None:
            root = self.roots[method] = Node()
        parts = parse_pattern(pattern)
        try:
            root.insert(pattern, parts, 0)
        except RouteConflictError as exc:
            exc.add_note(f"method: {method}")
            raise

        # A literal route is its own request path, so search shows what wins
        if not any(is_wild(part) for part in parts):
            winner = root.search(parts, 0)
            if winner is not None and winner.pattern != pattern:
                logger.warning(
                    "Route %s %s can never match: %s was registered earlier and matches first",
                    method,
                    pattern,
                    winner.pattern,
                )

        key = f"{method}-{pattern}"
        if key in self.handlers:
            logger.debug("Route %4s - %s replaced", method, pattern)
        else:
            logger.debug("Route %4s - %s", method, pattern)
        self.handlers[key] = handler
        self._routes[(method, pattern)] = None

    @property
    def routes(self) -> list[tuple[str, str]]:
        """Every registered ``(method, pattern)``, in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def get_route(self, method: str, path: str) -> RouteMatch | None:
        """Resolve a request path, or return ``None`` when nothing matches."""
        root = self.roots.get(method)
        if root is None:
            return None

        search_parts = split_path(path)
        node = root.search(search_parts, 0)
        if node is None:
            return None

        params: dict[str, str] = {}
        for index, part in enumerate(parse_pattern(node.pattern)):
            if part.startswith(":"):
                params[part[1:]] = search_parts[index]
            elif part.startswith("*"):
                if len(part) > 1:
                    params[part[1:]] = "/".join(search_parts[index:])
                break
        return RouteMatch(node=node, params=params)

    async def handle(self, ctx: Context) -> None:
        """Append the matched (or not-found) handler and run the chain."""
        match = self.get_route(ctx.method, ctx.path)
        if match is not None:
            ctx.params = match.params
            ctx.handlers.append(self.handlers[f"{ctx.method}-{match.pattern}"])
        else:
            ctx.handlers.append(_not_found)
        await ctx.next()
