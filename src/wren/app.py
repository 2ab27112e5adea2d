"""Engine and router groups.

Mutable during setup (routes, groups, middleware, templates).
Frozen at runtime when ``engine.run()`` or ``__call__()`` is first invoked.

Usage::

    from wren import Engine

    engine = Engine.default()

    @engine.get("/hello/:name")
    def hello(ctx):
        ctx.string(200, "hello %s", ctx.param("name"))

    api = engine.group("/api")
    api.use(auth_required)
    api.get("/users", list_users)

    engine.run()
"""

from __future__ import annotations

import logging
import posixpath
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kida import Environment

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import HandlerFunc
from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.middleware.static import StaticFiles
from wren.routing.router import Router
from wren.server.handler import handle_request
from wren.templating.integration import create_environment, render_template

logger = logging.getLogger("wren")


class RouterGroup:
    """A path-prefix scope carrying its own middleware.

    Every group shares the engine's router. Middleware applies to any
    request whose path starts with the group's prefix, whichever group
    the matched route was registered on.
    """

    __slots__ = ("engine", "middlewares", "parent", "prefix")

    def __init__(self, prefix: str, *, engine: Engine, parent: RouterGroup | None = None) -> None:
        self.prefix = prefix
        self.middlewares: list[HandlerFunc] = []
        # Kept for introspection; dispatch matches prefixes, not parents
        self.parent = parent
        self.engine = engine

    def __repr__(self) -> str:
        return f"<RouterGroup prefix={self.prefix!r} middlewares={len(self.middlewares)}>"

    def group(self, prefix: str) -> RouterGroup:
        """Create a nested group under this group's prefix."""
        engine = self.engine
        engine._check_not_frozen()
        new_group = RouterGroup(self.prefix + prefix, engine=engine, parent=self)
        engine.groups.append(new_group)
        return new_group

    def use(self, *middlewares: HandlerFunc) -> None:
        """Append middleware to this group."""
        self.engine._check_not_frozen()
        self.middlewares.extend(middlewares)

    def add_route(self, method: str, comp: str, handler: HandlerFunc) -> None:
        """Register *handler* for ``prefix + comp``."""
        self.engine._check_not_frozen()
        self.engine.router.add_route(method.upper(), self.prefix + comp, handler)

    # -- Method shortcuts --
    # Each one takes (pattern, handler) or works as a decorator: @group.get("/x")

    def get(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("GET", pattern, handler)

    def post(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("POST", pattern, handler)

    def put(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("PUT", pattern, handler)

    def patch(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("PATCH", pattern, handler)

    def delete(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("DELETE", pattern, handler)

    def head(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("HEAD", pattern, handler)

    def options(self, pattern: str, handler: HandlerFunc | None = None) -> Any:
        return self._register("OPTIONS", pattern, handler)

    def _register(self, method: str, pattern: str, handler: HandlerFunc | None) -> Any:
        if handler is not None:
            self.add_route(method, pattern, handler)
            return handler

        def decorator(func: HandlerFunc) -> HandlerFunc:
            self.add_route(method, pattern, func)
            return func

        return decorator

    # -- Static files --

    def static(self, relative_path: str, root: str | Path) -> StaticFiles:
        """Serve files under *root* at ``relative_path/*filepath``.

        ``group.static("/assets", "./static")`` answers
        ``GET <prefix>/assets/js/app.js`` from ``./static/js/app.js``.
        """
        if not relative_path.startswith("/"):
            msg = f"Static path {relative_path!r} must start with '/'."
            raise ConfigurationError(msg)
        handler = StaticFiles(root, cache_control=self.engine.config.static_cache_control)
        self.get(posixpath.join(relative_path, "*filepath"), handler)
        return handler


class Engine(RouterGroup):
    """The top-level group and request dispatcher.

    Owns the router, the list of every group, and the template setup.
    Registration is single-threaded setup work; the engine freezes on
    its first request and rejects changes afterwards.

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        worker compiles the engine, even when several call ``__call__()``
        concurrently on the first request.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_funcs",
        "_kida_env",
        "_template_dir",
        "config",
        "groups",
        "router",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        super().__init__("", engine=self)
        self.config: AppConfig = config or AppConfig()
        self.router = Router()
        self.groups: list[RouterGroup] = [self]
        self._funcs: dict[str, Callable[..., Any]] = {}
        self._template_dir: str | Path = self.config.template_dir
        self._kida_env: Environment | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<Engine groups={len(self.groups)} routes={len(self.router.routes)}>"

    @classmethod
    def default(cls, config: AppConfig | None = None) -> Engine:
        """An engine with ``logger()`` and ``recovery()`` installed."""
        from wren.middleware import logger as access_logger
        from wren.middleware import recovery

        engine = cls(config)
        engine.use(access_logger(), recovery())
        return engine

    # -- Dispatch --

    def middleware_for(self, path: str) -> list[HandlerFunc]:
        """Middleware of every group whose prefix starts *path*, in group order."""
        middlewares: list[HandlerFunc] = []
        for group in self.groups:
            if path.startswith(group.prefix):
                middlewares.extend(group.middlewares)
        return middlewares

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(scope, receive, send, engine=self)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Freeze at startup so the first request does not pay for it."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Templates --

    def set_func_map(self, funcs: dict[str, Callable[..., Any]]) -> None:
        """Register functions callable from templates."""
        self._check_not_frozen()
        self._funcs.update(funcs)

    def load_html_templates(self, directory: str | Path) -> None:
        """Use *directory* as the template root for ``ctx.html()``."""
        self._check_not_frozen()
        self._template_dir = directory

    def render(self, name: str, data: Any = None) -> str:
        """Render template *name*. Used by ``ctx.html()``."""
        if self._kida_env is None:
            with self._freeze_lock:
                if self._kida_env is None:
                    self._kida_env = create_environment(
                        self._template_dir,
                        self._funcs,
                        autoescape=self.config.autoescape,
                        auto_reload=self.config.debug,
                    )
        return render_template(self._kida_env, name, data)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the engine with pounce until interrupted."""
        from pounce.config import ServerConfig
        from pounce.server import Server

        logging.getLogger("wren").setLevel(self.config.log_level.upper())
        self._ensure_frozen()
        for method, pattern in self.router.routes:
            logger.info("Route %4s - %s", method, pattern)

        server_config = ServerConfig(
            host=host or self.config.host,
            port=port or self.config.port,
            workers=1,
            reload=self.config.debug,
        )
        Server(server_config, self).run()

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self.router.compile()
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the engine after it has started serving requests. "
                "Register routes, groups, and middleware before calling engine.run()."
            )
            raise RuntimeError(msg)
