"""wren: an HTTP router and middleware engine for ASGI.

Routes are matched through per-method segment tries supporting
``:name`` parameters and trailing ``*name`` wildcards. Each request
runs an onion-style chain: group middleware first, then the matched
handler.

Basic usage::

    from wren import Engine

    engine = Engine.default()

    @engine.get("/hello/:name")
    def hello(ctx):
        ctx.string(200, "hello %s", ctx.param("name"))

    engine.run()
"""

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "ConfigurationError",
    "Context",
    "Engine",
    "H",
    "RouteConflictError",
    "RouterGroup",
    "WrenError",
    "get_context",
    "logger",
    "recovery",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name in ("Engine", "RouterGroup"):
        from wren import app as _app

        return getattr(_app, name)

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name in ("Context", "H", "get_context"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name in ("logger", "recovery"):
        from wren import middleware as _mw

        return getattr(_mw, name)

    if name in ("ConfigurationError", "RouteConflictError", "WrenError"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
