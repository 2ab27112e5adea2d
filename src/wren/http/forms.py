"""Form body parsing behind ``ctx.post_form()``.

``application/x-www-form-urlencoded`` is parsed with the stdlib.
``multipart/form-data`` needs ``python-multipart``::

    pip install wren[forms]

Only plain fields become values. File parts are skipped.
"""

from typing import Any

from wren.errors import ConfigurationError
from wren.http.query import QueryParams

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


def media_type(content_type: str) -> str:
    """``"multipart/form-data; boundary=x"`` -> ``"multipart/form-data"``."""
    return content_type.split(";")[0].strip().lower()


def is_form(content_type: str) -> bool:
    return media_type(content_type) in (URLENCODED, MULTIPART)


def parse_form(body: bytes, content_type: str) -> QueryParams:
    """Parse a form body. Other content types give an empty mapping."""
    kind = media_type(content_type)
    if kind == URLENCODED:
        return QueryParams(body)
    if kind == MULTIPART:
        return _parse_multipart(body, content_type)
    return QueryParams()


def _parse_multipart(body: bytes, content_type: str) -> QueryParams:
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install wren[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    fields: dict[str, list[str]] = {}
    # Per-part state, reset on each part boundary
    header_field = bytearray()
    header_value = bytearray()
    value = bytearray()
    name: str | None = None
    is_file = False

    def on_part_begin() -> None:
        nonlocal name, is_file
        value.clear()
        name = None
        is_file = False

    def on_part_data(data: bytes, start: int, end: int) -> None:
        value.extend(data[start:end])

    def on_part_end() -> None:
        if name is not None and not is_file:
            fields.setdefault(name, []).append(value.decode("utf-8", errors="replace"))

    def on_header_field(data: bytes, start: int, end: int) -> None:
        header_field.extend(data[start:end])

    def on_header_value(data: bytes, start: int, end: int) -> None:
        header_value.extend(data[start:end])

    def on_header_end() -> None:
        nonlocal name, is_file
        if header_field.decode("latin-1").lower() == "content-disposition":
            _, params = parse_options_header(bytes(header_value))
            if b"name" in params:
                name = params[b"name"].decode("utf-8")
            is_file = b"filename" in params
        header_field.clear()
        header_value.clear()

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()
    return QueryParams.from_lists(fields)
