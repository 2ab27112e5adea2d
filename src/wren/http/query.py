"""Immutable query string and form parameters."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Parsed ``key=value&...`` data.

    Used for the URL query string and for form bodies. ``__getitem__``
    returns the first value for a key, ``get_list`` all of them. Blank
    values are kept, so ``?q=`` maps ``q`` to ``""``. Bytes are decoded
    as UTF-8 both before and after percent-unquoting.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, raw: bytes = b"") -> None:
        self._raw = raw
        self._data: dict[str, list[str]] = parse_qs(
            raw.decode("utf-8", errors="replace"), keep_blank_values=True
        )

    @classmethod
    def from_lists(cls, data: dict[str, list[str]]) -> QueryParams:
        """Wrap values parsed elsewhere, e.g. multipart fields."""
        params = cls()
        params._data = data
        return params

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, ()))

    @property
    def raw(self) -> bytes:
        return self._raw
