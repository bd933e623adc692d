"""CakePHP directory conventions: candidate search directories per resource kind."""

from __future__ import annotations

import logging
import os

from cakenav.config import ResourceKind

logger = logging.getLogger(__name__)


def _inside_plugins(path: str) -> bool:
    return f"{os.sep}plugins{os.sep}" in path


def _plugin_dir(plugin: str) -> str:
    return plugin.replace("/", os.sep)


def list_plugin_folders(root: str) -> list[str]:
    """Directories directly under ``<root>/plugins``, sorted by name."""
    plugins_path = os.path.join(root, "plugins")
    try:
        names = sorted(os.listdir(plugins_path))
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Failed to list {plugins_path}: {e}")
        return []
    return [
        os.path.join(plugins_path, name) for name in names
        if os.path.isdir(os.path.join(plugins_path, name))
    ]


def _base_paths(root: str, kind: ResourceKind, plugin: str | None, plugin_path: str | None) -> list[str]:
    bases: list[str] = []

    if plugin_path:
        bases.append(plugin_path)
    elif plugin:
        bases.append(os.path.join(root, "vendor", plugin.lower().replace("/", "-")))

    if plugin:
        bases.append(os.path.join(root, "templates", "plugin", _plugin_dir(plugin)))

    for plugin_folder in list_plugin_folders(root):
        if kind in (ResourceKind.SCRIPT, ResourceKind.STYLE):
            bases.append(plugin_folder)
            continue
        if plugin:
            bases.append(os.path.join(plugin_folder, "templates", "plugin", _plugin_dir(plugin)))
        bases.append(os.path.join(plugin_folder, "templates"))

    bases.append(root)
    return bases


def _expand(base: str, kind: ResourceKind, plugin_path: str | None) -> list[str]:
    in_plugins = _inside_plugins(base)

    if kind == ResourceKind.ELEMENT:
        return [
            os.path.join(base, "templates", "element"),
            os.path.join(base, "element"),
            base,
        ]
    if kind == ResourceKind.CELL_CLASS:
        return [os.path.join(base, "src", "View", "Cell")]
    if kind == ResourceKind.CELL:
        paths = [
            os.path.join(base, "templates", "cell"),
            os.path.join(base, "cell"),
            os.path.join(base, "src", "View", "Cell"),
        ]
        if not in_plugins:
            paths.append(base)
        return paths
    if kind == ResourceKind.TEMPLATE:
        templates = base if os.path.basename(base) == "templates" else os.path.join(base, "templates")
        return [templates, base] if in_plugins else [templates]
    if kind == ResourceKind.EMAIL:
        email = os.path.join(base, "templates", "email")
        return [email, base] if in_plugins else [email]

    # scripts and styles
    scope = kind.value
    paths = [
        os.path.join(base, "webroot"),
        os.path.join(base, "webroot", scope),
    ]
    if plugin_path:
        paths.append(os.path.join(plugin_path, "webroot", scope))
    return paths


def construct_search_paths(
    root: str,
    kind: ResourceKind,
    plugin: str | None = None,
    plugin_path: str | None = None,
) -> list[str]:
    """Return the candidate directories for *kind*, deduplicated and sorted.

    Bases, in the order they are gathered: the explicit plugin root (or a
    guessed ``vendor/<plugin>`` path), the app-level override directory for
    the plugin, every installed plugin's override/theme directories, and the
    workspace root. The final list is sorted lexicographically, so it is
    stable but not priority ranked.
    """
    root = os.path.abspath(root)
    bases = _base_paths(root, kind, plugin, plugin_path)
    candidates = {os.path.normpath(p) for base in bases for p in _expand(base, kind, plugin_path)}
    search_paths = sorted(candidates)
    logger.debug(f"Search paths for {kind.value} (plugin={plugin}): {search_paths}")
    return search_paths
