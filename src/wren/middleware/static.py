"""Static file handler used by ``RouterGroup.static()``.

Serves files below a root directory for the ``*filepath`` parameter
of the route it is registered on.
"""

import mimetypes
from pathlib import Path

import anyio.to_thread

from wren.context import Context


class StaticFiles:
    """Terminal handler that serves ``ctx.param("filepath")`` from *directory*.

    Security: resolves symlinks and verifies the final path is within
    the directory to prevent path traversal.

    Usage::

        engine.static("/assets", "./static")
        # GET /assets/css/site.css -> ./static/css/site.css
    """

    __slots__ = ("_cache_control", "_directory")

    def __init__(self, directory: str | Path, *, cache_control: str = "public, max-age=3600") -> None:
        self._directory = Path(directory).resolve()
        self._cache_control = cache_control

    @property
    def directory(self) -> Path:
        return self._directory

    async def __call__(self, ctx: Context) -> None:
        relative = ctx.param("filepath")
        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            ctx.status(403)
            return
        if not file_path.is_file():
            ctx.status(404)
            return

        body = await anyio.to_thread.run_sync(file_path.read_bytes)
        content_type, _ = mimetypes.guess_type(str(file_path))
        ctx.set_header("Content-Type", content_type or "application/octet-stream")
        ctx.set_header("Cache-Control", self._cache_control)
        ctx.data(200, body)
