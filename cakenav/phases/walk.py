"""Shared directory walks used by every index phase."""

from __future__ import annotations

import logging
import os
from typing import Iterator

from cakenav.cancellation import CancellationToken, check
from cakenav.conventions import list_plugin_folders
from cakenav.index.namespaces import NamespaceMap

logger = logging.getLogger(__name__)


def _log_walk_error(error: OSError) -> None:
    logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")


def walk_files(
    base: str,
    extensions: set[str],
    token: CancellationToken | None = None,
) -> Iterator[tuple[str, str]]:
    """Yield ``(full_path, relative_posix_path)`` for matching files under *base*.

    Directories and files are visited in sorted order so that repeated walks
    over an unchanged tree produce the same sequence.
    """
    if not os.path.isdir(base):
        return

    for dirpath, dirnames, filenames in os.walk(base, onerror=_log_walk_error):
        check(token)
        dirnames.sort()

        rel_dir = os.path.relpath(dirpath, base)
        if rel_dir == ".":
            rel_dir = ""

        for filename in sorted(filenames):
            check(token)
            if os.path.splitext(filename)[1].lower() not in extensions:
                continue
            full_path = os.path.join(dirpath, filename)
            rel_path = os.path.join(rel_dir, filename) if rel_dir else filename
            # Normalise path separators
            yield full_path, rel_path.replace("\\", "/")


def find_override_dirs(
    override_root: str,
    folder: str,
    token: CancellationToken | None = None,
) -> Iterator[tuple[str, str]]:
    """Yield ``(plugin_name, directory)`` for each ``<ns...>/<folder>`` below *override_root*.

    The walk keeps descending after a match: nested plugin namespaces
    (``Vendor/Plugin/element``) carry their own override folders.
    """
    if not os.path.isdir(override_root):
        return

    top = os.path.normpath(override_root)
    for dirpath, dirnames, _ in os.walk(top, onerror=_log_walk_error):
        check(token)
        dirnames.sort()
        if dirpath == top:
            continue
        candidate = os.path.join(dirpath, folder)
        if os.path.isdir(candidate):
            plugin_name = os.path.relpath(dirpath, top).replace(os.sep, "/")
            yield plugin_name, candidate


def collect_plugin_roots(root: str, namespaces: NamespaceMap) -> list[tuple[str, str]]:
    """Namespace-declared package roots plus any ``plugins/<Name>`` not declared.

    The application's own namespace (mapped to *root*) is not a plugin.
    """
    roots = list(namespaces.plugin_roots(exclude=root))
    seen = {os.path.normpath(directory) for _, directory in roots}
    for folder in list_plugin_folders(root):
        if os.path.normpath(folder) not in seen:
            roots.append((os.path.basename(folder), folder))
    return roots
