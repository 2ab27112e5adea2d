"""Tests for wren.context: the handler chain and response helpers."""

import logging
from typing import Any

import pytest

from wren.context import Context, H, current_context, get_context
from wren.http.request import Request


def _request(
    method: str = "GET",
    path: str = "/",
    *,
    query: bytes = b"",
    body: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
) -> Request:
    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query,
        "headers": headers or [],
    }
    return Request.from_asgi(scope, receive)


def _recorder(name: str, log: list[str]):
    async def handler(ctx: Context) -> None:
        log.append(f"{name}-before")
        await ctx.next()
        log.append(f"{name}-after")

    return handler


class TestChainOrdering:
    async def test_onion_order(self) -> None:
        log: list[str] = []

        def terminal(ctx: Context) -> None:
            log.append("H")

        ctx = Context(_request(), handlers=[_recorder("A", log), _recorder("B", log), terminal])
        await ctx.next()
        assert log == ["A-before", "B-before", "H", "B-after", "A-after"]

    async def test_cursor_starts_before_first_handler(self) -> None:
        ctx = Context(_request())
        assert ctx.index == -1

    async def test_cursor_ends_past_last_handler(self) -> None:
        ctx = Context(_request(), handlers=[lambda ctx: None, lambda ctx: None])
        await ctx.next()
        assert ctx.index == 2

    async def test_each_handler_runs_once(self) -> None:
        calls: list[int] = []
        handlers = [lambda ctx, i=i: calls.append(i) for i in range(4)]
        ctx = Context(_request(), handlers=handlers)
        await ctx.next()
        assert calls == [0, 1, 2, 3]

    async def test_handler_without_next_does_not_stop_chain(self) -> None:
        log: list[str] = []

        def pre_only(ctx: Context) -> None:
            log.append("pre")

        def terminal(ctx: Context) -> None:
            log.append("H")

        ctx = Context(_request(), handlers=[pre_only, _recorder("B", log), terminal])
        await ctx.next()
        assert log == ["pre", "B-before", "H", "B-after"]

    async def test_sync_middleware_calling_next_is_reported(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        log: list[str] = []

        def sync_middleware(ctx: Context) -> None:
            log.append("before")
            ctx.next()
            log.append("after")

        def terminal(ctx: Context) -> None:
            log.append("H")

        ctx = Context(_request(), handlers=[sync_middleware, terminal])
        with caplog.at_level(logging.WARNING, logger="wren"):
            await ctx.next()

        assert log == ["before", "after", "H"]
        assert "sync_middleware" in caplog.text
        assert "without awaiting" in caplog.text

    async def test_awaited_next_is_not_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        log: list[str] = []
        ctx = Context(_request(), handlers=[_recorder("A", log), lambda ctx: log.append("H")])
        with caplog.at_level(logging.WARNING, logger="wren"):
            await ctx.next()
        assert log == ["A-before", "H", "A-after"]
        assert "without awaiting" not in caplog.text

    async def test_async_terminal_handler(self) -> None:
        async def terminal(ctx: Context) -> None:
            ctx.string(201, "made")

        ctx = Context(_request(), handlers=[terminal])
        await ctx.next()
        assert ctx.writer.status == 201
        assert ctx.writer.body == b"made"

    async def test_empty_chain(self) -> None:
        ctx = Context(_request())
        await ctx.next()
        assert ctx.writer.written is False


class TestShortCircuit:
    async def test_fail_stops_later_handlers(self) -> None:
        ran: list[str] = []

        def guard(ctx: Context) -> None:
            ctx.fail(401, "unauthorized")

        def later(ctx: Context) -> None:
            ran.append("later")

        def terminal(ctx: Context) -> None:
            ran.append("H")

        ctx = Context(_request(), handlers=[guard, later, terminal])
        await ctx.next()

        assert ran == []
        assert ctx.is_aborted is True
        assert ctx.status_code == 401
        assert ctx.writer.status == 401
        assert ctx.writer.body == b'{"message": "unauthorized"}'
        assert ctx.writer.headers["content-type"] == "application/json"

    async def test_outer_links_still_unwind_after_fail(self) -> None:
        log: list[str] = []

        async def guard(ctx: Context) -> None:
            ctx.fail(403, "forbidden")

        ctx = Context(_request(), handlers=[_recorder("A", log), guard, lambda ctx: log.append("H")])
        await ctx.next()
        assert log == ["A-before", "A-after"]

    async def test_abort_writes_nothing(self) -> None:
        ran: list[str] = []

        def stop(ctx: Context) -> None:
            ctx.abort()

        ctx = Context(_request(), handlers=[stop, lambda ctx: ran.append("H")])
        await ctx.next()
        assert ran == []
        assert ctx.writer.written is False
        assert ctx.is_aborted is True

    async def test_not_aborted_after_normal_run(self) -> None:
        ctx = Context(_request(), handlers=[lambda ctx: None])
        await ctx.next()
        assert ctx.is_aborted is False


class TestRequestData:
    def test_param_missing_is_empty(self) -> None:
        ctx = Context(_request())
        ctx.params = {"id": "7"}
        assert ctx.param("id") == "7"
        assert ctx.param("nope") == ""

    def test_query(self) -> None:
        ctx = Context(_request(query=b"q=wren&page=2&page=3&blank="))
        assert ctx.query("q") == "wren"
        assert ctx.query("page") == "2"
        assert ctx.query("blank") == ""
        assert ctx.query("missing") == ""
        assert ctx.request.query.get_list("page") == ["2", "3"]

    async def test_post_form(self) -> None:
        request = _request(
            "POST",
            body=b"username=ann&password=s3cr3t",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
        )
        ctx = Context(request)
        assert await ctx.post_form("username") == "ann"
        assert await ctx.post_form("password") == "s3cr3t"
        assert await ctx.post_form("missing") == ""

    async def test_post_form_ignores_json_body(self) -> None:
        request = _request(
            "POST", body=b'{"a": 1}', headers=[(b"content-type", b"application/json")]
        )
        assert await Context(request).post_form("a") == ""
        assert await request.json() == {"a": 1}

    async def test_post_form_multipart(self) -> None:
        body = (
            b"--XYZ\r\n"
            b'Content-Disposition: form-data; name="username"\r\n'
            b"\r\n"
            b"ann\r\n"
            b"--XYZ\r\n"
            b'Content-Disposition: form-data; name="avatar"; filename="a.png"\r\n'
            b"Content-Type: image/png\r\n"
            b"\r\n"
            b"\x89PNG\r\n"
            b"--XYZ\r\n"
            b'Content-Disposition: form-data; name="city"\r\n'
            b"\r\n"
            b"M\xc3\xbcnchen\r\n"
            b"--XYZ--\r\n"
        )
        request = _request(
            "POST",
            body=body,
            headers=[(b"content-type", b"multipart/form-data; boundary=XYZ")],
        )
        ctx = Context(request)
        assert await ctx.post_form("username") == "ann"
        assert await ctx.post_form("city") == "München"
        # File parts are not form values
        assert await ctx.post_form("avatar") == ""

    async def test_post_form_utf8_body(self) -> None:
        request = _request(
            "POST",
            body="name=José&city=M%C3%BCnchen".encode(),
            headers=[(b"content-type", b"application/x-www-form-urlencoded; charset=utf-8")],
        )
        ctx = Context(request)
        assert await ctx.post_form("name") == "José"
        assert await ctx.post_form("city") == "München"

    def test_query_utf8(self) -> None:
        ctx = Context(_request(query="q=café".encode()))
        assert ctx.query("q") == "café"

    def test_keys(self) -> None:
        ctx = Context(_request())
        ctx.set("user", "ann")
        assert ctx.get("user") == "ann"
        assert ctx.get("other", "fallback") == "fallback"


class TestResponseHelpers:
    def test_string_formats_values(self) -> None:
        ctx = Context(_request())
        ctx.string(200, "hello %s, you are %d", "ann", 30)
        assert ctx.writer.body == b"hello ann, you are 30"
        assert ctx.writer.headers["content-type"] == "text/plain; charset=utf-8"

    def test_string_without_values_keeps_percent(self) -> None:
        ctx = Context(_request())
        ctx.string(200, "100%")
        assert ctx.writer.body == b"100%"

    def test_json(self) -> None:
        ctx = Context(_request())
        ctx.json(201, H(name="ann", tags=["a", "b"]))
        assert ctx.status_code == 201
        assert ctx.writer.body == b'{"name": "ann", "tags": ["a", "b"]}'

    def test_json_unserializable(self) -> None:
        ctx = Context(_request())
        ctx.json(200, {"when": object()})
        assert ctx.writer.status == 500
        assert b"not JSON serializable" in ctx.writer.body

    def test_data(self) -> None:
        ctx = Context(_request())
        ctx.data(200, b"\x00\x01")
        assert ctx.writer.body == b"\x00\x01"
        assert "content-type" not in ctx.writer.headers

    def test_first_status_wins(self) -> None:
        ctx = Context(_request())
        ctx.string(200, "partial")
        ctx.fail(500, "boom")
        assert ctx.writer.status == 200
        assert ctx.status_code == 500
        assert ctx.writer.headers["content-type"] == "text/plain; charset=utf-8"

    def test_set_header(self) -> None:
        ctx = Context(_request())
        ctx.set_header("X-Request-Id", "abc")
        ctx.status(204)
        assert ctx.writer.headers["x-request-id"] == "abc"

    def test_html_without_engine(self) -> None:
        with pytest.raises(RuntimeError):
            Context(_request()).html(200, "index.html")


class TestCurrentContext:
    def test_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_context()

    def test_set_and_reset(self) -> None:
        ctx = Context(_request())
        token = current_context.set(ctx)
        try:
            assert get_context() is ctx
        finally:
            current_context.reset(token)
