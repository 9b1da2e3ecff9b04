"""Request header entries and the multi-value response header map."""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HeaderEntry:
    """One request header to merge into a request. Duplicate keys accumulate."""

    key: str
    value: str


class ResponseHeaderMap(MutableMapping[str, list[str]]):
    """
    Ordered, multi-value header collection captured from a response.

    Keys are stored exactly as received. Distinct keys keep insertion order
    and values within a key keep arrival order. Looking up an absent key
    with [] or get() returns an empty list instead of raising. Lookups hand
    out copies, so mutate through add() or assignment.
    """

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None):
        self._store: dict[str, list[str]] = {}
        if entries:
            for key, values in entries.items():
                self._store[key] = list(values)

    @classmethod
    def from_headers(cls, headers: Any) -> "ResponseHeaderMap":
        """
        Build from any header container exposing items().

        Multi-dicts (aiohttp's CIMultiDictProxy) yield repeated keys, and each
        occurrence is appended.
        """
        header_map = cls()
        if headers is None:
            return header_map
        for key, value in headers.items():
            header_map.add(str(key), str(value))
        return header_map

    def add(self, key: str, value: str) -> None:
        self._store.setdefault(key, []).append(value)

    def first(self, key: str, default: str | None = None) -> str | None:
        values = self._store.get(key)
        return values[0] if values else default

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._store.items()}

    def __getitem__(self, key: str) -> list[str]:
        return list(self._store.get(key, ()))

    def __setitem__(self, key: str, value: list[str]) -> None:
        self._store[key] = list(value)

    def __delitem__(self, key: str) -> None:
        del self._store[key]

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def get(self, key: str, default: list[str] | None = None) -> list[str]:
        if key in self._store:
            return list(self._store[key])
        return [] if default is None else default

    def setdefault(self, key: str, default: Iterable[str] = ()) -> list[str]:
        if key not in self._store:
            self._store[key] = list(default)
        return list(self._store[key])

    def pop(self, key: str, *default: Any) -> Any:
        if key in self._store:
            return self._store.pop(key)
        if default:
            return default[0]
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"ResponseHeaderMap({self._store!r})"


__all__ = ["HeaderEntry", "ResponseHeaderMap"]
