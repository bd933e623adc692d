"""Element (partial view) index phase."""

from __future__ import annotations

import logging
import os

from cakenav.cancellation import CancellationToken
from cakenav.index.key_index import KeyIndex, KeyIndexBuilder
from cakenav.index.namespaces import NamespaceMap
from cakenav.phases.walk import collect_plugin_roots, find_override_dirs, walk_files

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = {".php"}


def element_key(plugin_name: str, rel_path: str) -> str:
    element_path = os.path.splitext(rel_path)[0]
    return f"{plugin_name}.{element_path}" if plugin_name else element_path


def scan_element_directory(
    directory: str,
    plugin_name: str = "",
    token: CancellationToken | None = None,
) -> KeyIndexBuilder:
    builder = KeyIndexBuilder()
    for full_path, rel_path in walk_files(directory, TEMPLATE_EXTENSIONS, token):
        builder.add(element_key(plugin_name, rel_path), full_path)
    return builder


def scan_element_overrides(override_root: str, token: CancellationToken | None = None) -> KeyIndexBuilder:
    builder = KeyIndexBuilder()
    for plugin_name, element_dir in find_override_dirs(override_root, "element", token):
        builder.merge(scan_element_directory(element_dir, plugin_name, token))
    return builder


def run_element_phase(
    root: str,
    namespaces: NamespaceMap,
    token: CancellationToken | None = None,
) -> KeyIndex:
    """Walk app, override and plugin element trees into a fresh index."""
    builder = KeyIndexBuilder()

    app_element_path = os.path.join(root, "templates", "element")
    if os.path.isdir(app_element_path):
        builder.merge(scan_element_directory(app_element_path, token=token))
    else:
        logger.debug(f"App level element directory does not exist: {app_element_path}")

    builder.merge(scan_element_overrides(os.path.join(root, "templates", "plugin"), token))

    for plugin_name, plugin_path in collect_plugin_roots(root, namespaces):
        builder.merge(scan_element_directory(
            os.path.join(plugin_path, "templates", "element"), plugin_name, token,
        ))
        builder.merge(scan_element_overrides(os.path.join(plugin_path, "templates", "plugin"), token))

    index = builder.build()
    logger.info(f"Element index generated with {len(index)} keys")
    return index
