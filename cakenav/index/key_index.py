"""Symbolic key -> file path index: a local builder and an immutable snapshot."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping


class KeyIndex:
    """Immutable key -> paths mapping produced by one build pass.

    Keys keep their insertion order, which is the (sorted) walk order of the
    build that produced them. A key is never mapped to an empty tuple.
    """

    def __init__(self, entries: Mapping[str, tuple[str, ...]] | None = None) -> None:
        self._entries: Mapping[str, tuple[str, ...]] = MappingProxyType(dict(entries or {}))

    def get(self, key: str) -> tuple[str, ...]:
        return self._entries.get(key, ())

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def items(self) -> Iterator[tuple[str, tuple[str, ...]]]:
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def as_dict(self) -> dict[str, list[str]]:
        return {key: list(paths) for key, paths in self._entries.items()}


class KeyIndexBuilder:
    """Append-only accumulator owned by a single walk."""

    def __init__(self, unique: bool = False) -> None:
        self._unique = unique
        self._entries: dict[str, list[str]] = {}

    def add(self, key: str, path: str) -> None:
        paths = self._entries.setdefault(key, [])
        if self._unique and path in paths:
            return
        paths.append(path)

    def add_all(self, keys: list[str], path: str) -> None:
        for key in keys:
            self.add(key, path)

    def merge(self, other: KeyIndexBuilder) -> None:
        for key, paths in other._entries.items():
            for path in paths:
                self.add(key, path)

    def __len__(self) -> int:
        return len(self._entries)

    def build(self) -> KeyIndex:
        return KeyIndex({key: tuple(paths) for key, paths in self._entries.items() if paths})
