"""Reference string parsing: plugin qualifiers, cell references, name inflection."""

from __future__ import annotations

import re

from cakenav.config import ClassInfo, ComponentReference, ReferenceDescriptor

ASSET_EXTENSION_KEYWORDS = {"js", "css"}

_UPPER = re.compile(r"(?<!^)(?=[A-Z])")
_SEPARATED = re.compile(r"[-_](\w)")
_PLUGIN_PREFIX = re.compile(r"^([\w/]+)\.")
_NAMESPACE = re.compile(r"namespace\s+([\w\\]+)")


def underscore(name: str) -> str:
    """``renderWidget`` -> ``render_widget``; ``Display`` -> ``display``."""
    return _UPPER.sub("_", name).lower()


def variable_camelize(name: str) -> str:
    """``recent_posts`` -> ``recentPosts``; a leading separator is dropped."""
    def _replace(match: re.Match) -> str:
        char = match.group(1)
        return char.lower() if match.start() == 0 else char.upper()

    return _SEPARATED.sub(_replace, name)


def split_qualifier(ref: str) -> ReferenceDescriptor:
    """Split ``Plugin.path`` into its qualifier and remainder.

    A trailing ``.js``/``.css`` is ignored when looking for the qualifier, so
    ``Blog.app.css`` is ``(Blog, app)`` while ``app.css`` has no qualifier and
    keeps its full text as the path.
    """
    parts = ref.split(".")
    if len(parts) > 1 and parts[-1] in ASSET_EXTENSION_KEYWORDS:
        parts.pop()
    if len(parts) > 1 and parts[0]:
        return ReferenceDescriptor(plugin=parts[0], path=".".join(parts[1:]))
    return ReferenceDescriptor(plugin=None, path=ref)


def split_component_reference(ref: str) -> ComponentReference:
    """Split ``[Plugin.]Class::method`` and derive the view file path.

    ``Blog.Posts::recentItems`` -> plugin ``Blog``, class ``Posts``,
    path ``Posts/recent_items``. Without exactly one ``::`` the reference is
    returned whole with an empty method name.
    """
    parts = ref.split("::")
    if len(parts) != 2:
        return ComponentReference(plugin=None, path=ref, class_name=ref, method_name="")

    cell_class, method_name = parts
    class_path = cell_class.replace("\\", "/")
    full_path = f"{class_path}/{underscore(method_name)}"

    plugin_match = _PLUGIN_PREFIX.match(class_path)
    if plugin_match:
        cut = len(plugin_match.group(0))
        return ComponentReference(
            plugin=plugin_match.group(1),
            path=full_path[cut:],
            class_name=class_path[cut:],
            method_name=method_name,
        )
    return ComponentReference(plugin=None, path=full_path, class_name=class_path, method_name=method_name)


def extract_class_info(text: str, class_suffix: str) -> ClassInfo | None:
    """Read ``namespace`` and ``class <Name><class_suffix>`` from PHP source.

    *class_suffix* is ``Controller`` or ``Cell``; the namespace is split around that
    segment, e.g. ``App\\Controller\\Admin`` gives prefix ``App`` and suffix
    ``Admin``.
    """
    namespace_match = _NAMESPACE.search(text)
    class_match = re.search(rf"class\s+(\w+){class_suffix}\b", text)
    if not namespace_match or not class_match:
        return None

    parts = namespace_match.group(1).split("\\")
    prefix = ""
    tail = ""
    if class_suffix in parts:
        at = parts.index(class_suffix)
        prefix = "\\".join(parts[:at])
        tail = "\\".join(parts[at + 1:])
    return ClassInfo(name=class_match.group(1), prefix=prefix, suffix=tail)
