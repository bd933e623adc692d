"""Cell view template index phase."""

from __future__ import annotations

import logging
import os

from cakenav.cancellation import CancellationToken
from cakenav.index.key_index import KeyIndex, KeyIndexBuilder
from cakenav.index.namespaces import NamespaceMap
from cakenav.phases.walk import collect_plugin_roots, find_override_dirs, walk_files
from cakenav.references import variable_camelize

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = {".php"}


def cell_keys(plugin_name: str, rel_path: str) -> list[str]:
    """Keys for ``<Cell>/<view>.php``: raw view name plus a camelised variant.

    Returns no keys for a template sitting directly in the cell root.
    """
    segments = os.path.splitext(rel_path)[0].split("/")
    if len(segments) < 2:
        return []
    cell_name, view_name = segments[-2], segments[-1]
    prefix = f"{plugin_name}." if plugin_name else ""

    keys = [f"{prefix}{cell_name}::{view_name}"]
    if "_" in view_name or "-" in view_name:
        keys.append(f"{prefix}{cell_name}::{variable_camelize(view_name)}")
    return keys


def scan_cell_directory(
    directory: str,
    plugin_name: str = "",
    token: CancellationToken | None = None,
) -> KeyIndexBuilder:
    builder = KeyIndexBuilder()
    for full_path, rel_path in walk_files(directory, TEMPLATE_EXTENSIONS, token):
        builder.add_all(cell_keys(plugin_name, rel_path), full_path)
    return builder


def scan_cell_overrides(override_root: str, token: CancellationToken | None = None) -> KeyIndexBuilder:
    builder = KeyIndexBuilder()
    for plugin_name, cell_dir in find_override_dirs(override_root, "cell", token):
        builder.merge(scan_cell_directory(cell_dir, plugin_name, token))
    return builder


def run_cell_phase(
    root: str,
    namespaces: NamespaceMap,
    token: CancellationToken | None = None,
) -> KeyIndex:
    """Walk app, override and plugin cell template trees into a fresh index."""
    builder = KeyIndexBuilder()

    app_cell_path = os.path.join(root, "templates", "cell")
    if os.path.isdir(app_cell_path):
        builder.merge(scan_cell_directory(app_cell_path, token=token))
    else:
        logger.debug(f"App level cell directory does not exist: {app_cell_path}")

    builder.merge(scan_cell_overrides(os.path.join(root, "templates", "plugin"), token))

    for plugin_name, plugin_path in collect_plugin_roots(root, namespaces):
        builder.merge(scan_cell_directory(
            os.path.join(plugin_path, "templates", "cell"), plugin_name, token,
        ))
        builder.merge(scan_cell_overrides(os.path.join(plugin_path, "templates", "plugin"), token))

    index = builder.build()
    logger.info(f"Cell index generated with {len(index)} keys")
    return index
