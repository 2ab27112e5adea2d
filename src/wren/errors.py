"""wren exception hierarchy.

Raised while routes, groups, and middleware are registered. Routing
misses never raise: the router answers them with a 404 response.
"""


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when a route registration or app setting is invalid.

    Typically raised by ``Router.add_route()`` at startup, before the
    engine starts serving requests.
    """


class RouteConflictError(ConfigurationError):
    """Two wild segments with different names at the same trie position.

    ``/p/:lang`` and ``/p/:id`` under the same method would alias to one
    branch, so the second registration is rejected.
    """

    def __init__(self, pattern: str, existing: str, segment: str) -> None:
        self.pattern = pattern
        self.existing = existing
        self.segment = segment
        super().__init__(
            f"{pattern!r}: segment {segment!r} conflicts with "
            f"wild segment {existing!r} already registered at the same position"
        )
