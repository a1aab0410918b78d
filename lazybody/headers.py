from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Union

HeaderSource = Union[
    "Headers",
    Mapping[str, Union[str, Iterable[str]]],
    Iterable[tuple[str, str]],
]


def _sanitize_header(name: str, value: str) -> tuple[str, str]:
    """
    Normalize a received header pair: drop CR, LF and null bytes a lenient
    transport may have let through, and trim surrounding whitespace.
    """
    clean_name = name.replace("\r", "").replace("\n", "").replace("\x00", "")
    clean_value = value.replace("\r", "").replace("\n", "").replace("\x00", "")
    return clean_name.strip(), clean_value.strip()


def _iter_pairs(source: HeaderSource | None) -> Iterator[tuple[str, str]]:
    if source is None:
        return
    if isinstance(source, Headers):
        yield from source.raw
        return
    if isinstance(source, Mapping):
        for name, value in source.items():
            if isinstance(value, str):
                yield name, value
            else:
                for item in value:
                    yield name, item
        return
    for name, value in source:
        yield name, value


class Headers(Mapping[str, str]):
    """
    Immutable, case-insensitive, multi-value header mapping.

    Item access returns the first value received for a name; use get_all()
    for every value. Iteration yields lower-cased names in first-seen order.
    """

    __slots__ = ("_raw", "_index")

    def __init__(self, source: HeaderSource | None = None) -> None:
        raw: list[tuple[str, str]] = []
        index: dict[str, list[str]] = {}
        for name, value in _iter_pairs(source):
            name, value = _sanitize_header(name, value)
            raw.append((name, value))
            index.setdefault(name.lower(), []).append(value)
        self._raw = tuple(raw)
        self._index = index

    @property
    def raw(self) -> tuple[tuple[str, str], ...]:
        """Header pairs in received order with their original casing."""
        return self._raw

    def get_all(self, name: str) -> list[str]:
        return list(self._index.get(name.lower(), ()))

    def __getitem__(self, name: str) -> str:
        values = self._index.get(name.lower())
        if not values:
            raise KeyError(name)
        return values[0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({list(self._raw)!r})"
