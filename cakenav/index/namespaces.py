"""Namespace-to-directory map parsed from Composer's PSR-4 autoload table."""

from __future__ import annotations

import logging
import os
import re
from types import MappingProxyType
from typing import Iterator

logger = logging.getLogger(__name__)

AUTOLOAD_PSR4 = os.path.join("vendor", "composer", "autoload_psr4.php")

_RETURN_ARRAY = re.compile(r"return\s+array\s*\(([\s\S]*?)\);")
_ENTRY = re.compile(r"""^\s*(['"])(?P<ns>.*?)\1\s*=>\s*(?P<value>.+)$""")
_DIR_EXPR = re.compile(r"\$(?P<var>baseDir|vendorDir)\s*\.\s*'(?P<rel>[^']*)'")

_TEST_SEGMENTS = {"tests"}


class NamespaceMap:
    """Immutable namespace -> absolute directory snapshot in first-seen order."""

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self._entries = MappingProxyType(dict(entries or {}))

    def resolve(self, namespace: str) -> str | None:
        """Return the package root for *namespace* (``/`` or ``\\`` separated)."""
        normalized = namespace.replace("/", "\\").rstrip("\\")
        return self._entries.get(normalized)

    def reverse_lookup(self, file_path: str) -> str | None:
        """Top namespace segment of the longest directory containing *file_path*."""
        target = os.path.normpath(file_path)
        longest = ""
        matched: str | None = None
        for namespace, directory in self._entries.items():
            if not _is_within(target, directory):
                continue
            if len(directory) > len(longest):
                longest = directory
                matched = namespace.split("\\")[0]
        return matched

    def plugin_roots(self, exclude: str | None = None) -> Iterator[tuple[str, str]]:
        """Yield ``(plugin_name, directory)``; the name is the first two segments."""
        excluded = os.path.normpath(exclude) if exclude else None
        for namespace, directory in self._entries.items():
            if excluded and directory == excluded:
                continue
            yield "/".join(namespace.split("\\")[:2]), directory

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._entries


def _is_within(path: str, directory: str) -> bool:
    return path == directory or path.startswith(directory.rstrip(os.sep) + os.sep)


def _clean_namespace(raw: str) -> str:
    return raw.replace("\\\\", "\\").rstrip("\\")


def _package_root(relative: str) -> str | None:
    """Strip slashes and a trailing ``src``; None for test-only mappings."""
    segments = [s for s in relative.replace("\\", "/").split("/") if s]
    if segments and segments[-1] in _TEST_SEGMENTS:
        return None
    if segments and segments[-1] == "src":
        segments = segments[:-1]
    return "/".join(segments)


def parse_autoload_psr4(root: str) -> NamespaceMap:
    """Parse ``vendor/composer/autoload_psr4.php`` under *root*.

    A missing or unparsable file yields an empty map.
    """
    autoload_path = os.path.join(root, AUTOLOAD_PSR4)
    if not os.path.isfile(autoload_path):
        logger.debug(f"autoload_psr4.php not found at {autoload_path}")
        return NamespaceMap()

    try:
        with open(autoload_path, encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        logger.warning(f"Failed to read {autoload_path}: {e}")
        return NamespaceMap()

    match = _RETURN_ARRAY.search(content)
    if not match:
        logger.debug(f"No return array in {autoload_path}")
        return NamespaceMap()

    entries: dict[str, str] = {}
    for line in match.group(1).splitlines():
        entry = _ENTRY.match(line)
        if not entry:
            continue
        namespace = _clean_namespace(entry.group("ns"))
        dir_expr = _DIR_EXPR.search(entry.group("value"))
        if not namespace or not dir_expr:
            continue

        relative = _package_root(dir_expr.group("rel"))
        if relative is None:
            continue

        base = root if dir_expr.group("var") == "baseDir" else os.path.join(root, "vendor")
        directory = os.path.normpath(os.path.join(base, relative)) if relative else os.path.normpath(base)
        # last writer wins, first-seen order kept
        entries[namespace] = directory

    logger.debug(f"Parsed {len(entries)} namespaces from {autoload_path}")
    return NamespaceMap(entries)


class NamespaceResolver:
    """Per-workspace cache around :func:`parse_autoload_psr4`."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)
        self._map: NamespaceMap | None = None

    def load(self, refresh: bool = False) -> NamespaceMap:
        if self._map is not None and not refresh:
            return self._map
        self._map = parse_autoload_psr4(self.root)
        return self._map

    def resolve(self, namespace: str) -> str | None:
        return self.load().resolve(namespace)

    def reverse_lookup(self, file_path: str) -> str | None:
        return self.load().reverse_lookup(file_path)
