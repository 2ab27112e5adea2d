"""Custom Middleware: timing, rate limiting, and auth guards.

Demonstrates:
- Function middleware (timing: sets X-Response-Time before handing off)
- Class middleware (rate limiter: 5 req/min per IP, fails with 429)
- Group middleware (token check only under /admin)
- threading.Lock for shared state across concurrent requests

Run:
    cd examples/custom_middleware && python app.py
"""

import logging
import threading
import time

from wren import Context, Engine

logger = logging.getLogger("wren.examples")

engine = Engine.default()


# ---------------------------------------------------------------------------
# Function middleware: timing
# ---------------------------------------------------------------------------


async def timing(ctx: Context) -> None:
    """Stamp the request start, then log the total after the chain returns."""
    start = time.monotonic()
    ctx.set_header("X-Request-Start", f"{start:.6f}")
    await ctx.next()
    logger.info("%s took %.3fs", ctx.path, time.monotonic() - start)


# ---------------------------------------------------------------------------
# Class middleware: rate limiter
# ---------------------------------------------------------------------------


class RateLimiter:
    """Per-IP rate limiter. Fails with 429 when the limit is exceeded."""

    def __init__(self, max_requests: int, window: float) -> None:
        self.max_requests = max_requests
        self.window = window
        self._counts: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    async def __call__(self, ctx: Context) -> None:
        client_ip = ctx.request.headers.get("x-forwarded-for", "127.0.0.1")
        if "," in client_ip:
            client_ip = client_ip.split(",")[0].strip()

        with self._lock:
            now = time.monotonic()
            hits = self._counts.setdefault(client_ip, [])
            hits[:] = [t for t in hits if now - t < self.window]
            limited = len(hits) >= self.max_requests
            if not limited:
                hits.append(now)

        if limited:
            ctx.fail(429, "Too Many Requests")
            return
        await ctx.next()


# ---------------------------------------------------------------------------
# Group middleware: admin token
# ---------------------------------------------------------------------------


async def require_token(ctx: Context) -> None:
    if ctx.request.headers.get("x-admin-token") != "letmein":
        ctx.fail(403, "Forbidden")
        return
    ctx.set("admin", True)
    await ctx.next()


engine.use(RateLimiter(max_requests=5, window=60.0), timing)


@engine.get("/")
def index(ctx: Context) -> None:
    ctx.string(200, "Hello from custom middleware!")


admin = engine.group("/admin")
admin.use(require_token)


@admin.get("/stats")
def stats(ctx: Context) -> None:
    ctx.json(200, {"admin": ctx.get("admin", False)})


if __name__ == "__main__":
    engine.run()
