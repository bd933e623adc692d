"""Script and stylesheet index phase."""

from __future__ import annotations

import logging
import os
import re

from cakenav.cancellation import CancellationToken
from cakenav.index.key_index import KeyIndex, KeyIndexBuilder
from cakenav.index.namespaces import NamespaceMap
from cakenav.phases.walk import collect_plugin_roots, walk_files

logger = logging.getLogger(__name__)

ASSET_EXTENSIONS = {".js", ".css"}

_SCOPE_PREFIX = re.compile(r"^(css/|js/)", re.IGNORECASE)


def asset_keys(plugin_name: str, asset_path: str, ext: str) -> list[str]:
    """Every name an asset can be requested by, in registration order.

    For ``js/app.js`` in plugin ``Blog``: ``Blog.js/app.js``, ``Blog.js/app``,
    ``Blog.app.js``, ``Blog.app``, ``Blog./js/app.js``, ``Blog./js/app``.
    """
    scope = ext.lstrip(".")
    without_ext = asset_path[: -len(ext)]
    trimmed = _SCOPE_PREFIX.sub("", asset_path)
    trimmed_without_ext = trimmed[: -len(ext)]

    variants = [
        asset_path,
        without_ext,
        trimmed,
        trimmed_without_ext,
        f"/{scope}/{trimmed}",
        f"/{scope}/{trimmed_without_ext}",
    ]
    prefix = f"{plugin_name}." if plugin_name else ""
    keys = [f"{prefix}{variant}" for variant in variants]
    return list(dict.fromkeys(keys))


def scan_asset_directory(
    directory: str,
    plugin_name: str = "",
    token: CancellationToken | None = None,
) -> tuple[KeyIndexBuilder, KeyIndexBuilder]:
    scripts = KeyIndexBuilder(unique=True)
    styles = KeyIndexBuilder(unique=True)
    for full_path, rel_path in walk_files(directory, ASSET_EXTENSIONS, token):
        ext = os.path.splitext(rel_path)[1].lower()
        target = scripts if ext == ".js" else styles
        target.add_all(asset_keys(plugin_name, rel_path, ext), full_path)
    return scripts, styles


def run_asset_phase(
    root: str,
    namespaces: NamespaceMap,
    token: CancellationToken | None = None,
) -> tuple[KeyIndex, KeyIndex]:
    """Walk the app webroot and every plugin webroot; returns ``(scripts, styles)``."""
    scripts = KeyIndexBuilder(unique=True)
    styles = KeyIndexBuilder(unique=True)

    webroots = [("", os.path.join(root, "webroot"))]
    webroots += [
        (plugin_name, os.path.join(plugin_path, "webroot"))
        for plugin_name, plugin_path in collect_plugin_roots(root, namespaces)
    ]

    for plugin_name, webroot in webroots:
        if not os.path.isdir(webroot):
            continue
        found_scripts, found_styles = scan_asset_directory(webroot, plugin_name, token)
        scripts.merge(found_scripts)
        styles.merge(found_styles)

    script_index, style_index = scripts.build(), styles.build()
    logger.info(f"JS index generated with {len(script_index)} keys")
    logger.info(f"CSS index generated with {len(style_index)} keys")
    return script_index, style_index
