"""Resolve raw references plus calling-file context into concrete files."""

from __future__ import annotations

import logging
import os
import re
from typing import Callable, Iterable

from cakenav.cancellation import CancellationToken, check
from cakenav.completion import complete
from cakenav.config import (
    LOOKUP_POLICIES,
    CompletionItem,
    DocumentLink,
    FileContext,
    FileInfo,
    LookupPolicy,
    Reference,
    ResourceKind,
    SymbolLocation,
)
from cakenav.conventions import construct_search_paths
from cakenav.index.key_index import KeyIndex
from cakenav.patterns import (
    find_asset_compress_references,
    find_line_references,
    find_references,
    is_asset_compress,
    reference_at,
)
from cakenav.pipeline import IndexGeneration
from cakenav.references import (
    extract_class_info,
    split_component_reference,
    split_qualifier,
    underscore,
)
from cakenav.workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_CELL_METHOD = "display"
TEMPLATE_EXTENSIONS = (".php",)

KeyMatchStrategy = Callable[[KeyIndex, str], tuple[str, ...]]


# --- Key matching strategies ---

def suffix_match(index: KeyIndex, candidate: str) -> tuple[str, ...]:
    """Paths of the first index key (in index order) that ends with *candidate*.

    Allows partially qualified element names, but also matches keys that
    merely share a trailing substring: ``bar`` matches ``xbar``.
    """
    for key, paths in index.items():
        if key.endswith(candidate):
            return paths
    return ()


def segment_match(index: KeyIndex, candidate: str) -> tuple[str, ...]:
    """Like :func:`suffix_match` but only at a ``/`` or ``.`` boundary."""
    for key, paths in index.items():
        if key == candidate or key.endswith("/" + candidate) or key.endswith("." + candidate):
            return paths
    return ()


def exact_match(index: KeyIndex, candidate: str) -> tuple[str, ...]:
    return index.get(candidate)


# --- File helpers ---

def _dedupe_key(path: str) -> str:
    return os.path.normcase(os.path.normpath(path.replace("\\", "/")))


def create_file_info(file_path: str, root: str, method_location: SymbolLocation | None = None) -> FileInfo:
    path = os.path.normpath(file_path)
    try:
        show_path = os.path.relpath(path, root)
    except ValueError:
        show_path = path
    return FileInfo(
        name=os.path.basename(path),
        path=path,
        show_path=show_path.replace("\\", "/"),
        method_location=method_location,
    )


def dedupe_and_sort(files: Iterable[FileInfo]) -> list[FileInfo]:
    """One entry per normalised absolute path, sorted by display path."""
    unique: dict[str, FileInfo] = {}
    for info in files:
        key = _dedupe_key(info.path)
        existing = unique.get(key)
        if existing is None or (existing.method_location is None and info.method_location is not None):
            unique[key] = info
    return sorted(unique.values(), key=lambda info: (info.show_path, info.path))


def search_files(
    base_paths: Iterable[str],
    file_name: str,
    extensions: Iterable[str] = TEMPLATE_EXTENSIONS,
    token: CancellationToken | None = None,
) -> list[str]:
    """Existing ``<base>/<file_name><ext>`` files, in base path order."""
    found = []
    relative = file_name.lstrip("/\\")
    if not relative:
        return found
    for base_path in base_paths:
        check(token)
        for ext in extensions:
            full_path = os.path.join(base_path, relative + ext)
            if os.path.isfile(full_path):
                found.append(full_path)
    return found


def find_method_in_file(file_path: str, method_name: str) -> SymbolLocation | None:
    """First ``function <method_name>`` declaration line in *file_path*."""
    if not method_name:
        return None
    try:
        with open(file_path, encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except OSError as e:
        logger.warning(f"Failed to read {file_path}: {e}")
        return None

    method_regex = re.compile(rf"\bfunction\s+{re.escape(method_name)}\b")
    for line_no, line in enumerate(lines):
        if method_regex.search(line):
            return SymbolLocation(line=line_no, column=line.index("function"))
    return None


def candidate_keys(path: str, explicit_plugin: str | None, current_plugin: str | None) -> list[str]:
    """Lookup keys, most specific first: explicit plugin, calling file's plugin, bare."""
    keys = []
    if explicit_plugin:
        keys.append(f"{explicit_plugin}.{path}")
    if current_plugin:
        keys.append(f"{current_plugin}.{path}")
    keys.append(path)
    return list(dict.fromkeys(keys))


class Resolver:
    """Turns raw references into :class:`FileInfo` lists for a workspace."""

    def __init__(self, workspace: Workspace, element_key_match: KeyMatchStrategy = suffix_match) -> None:
        self.workspace = workspace
        self.element_key_match = element_key_match

    @property
    def root(self) -> str:
        return self.workspace.root

    def context_for(self, file_path: str, text: str | None = None) -> FileContext:
        path = os.path.abspath(file_path)
        return FileContext(path=path, text=text, plugin=self.workspace.plugin_for(path))

    # --- Public surface ---

    def resolve(
        self,
        raw: str,
        kind: ResourceKind,
        context: FileContext,
        token: CancellationToken | None = None,
    ) -> list[FileInfo]:
        """Resolve *raw* of *kind* as referenced from *context*.

        Unresolvable references give an empty list. Raises
        :class:`~cakenav.cancellation.OperationCancelled` only when *token*
        is cancelled.
        """
        generation = self.workspace.generation
        raw = raw.strip()
        if not raw:
            return []

        if kind == ResourceKind.ELEMENT:
            found = self._resolve_element(generation, raw, context, token)
        elif kind == ResourceKind.CELL:
            found = self._resolve_cell(generation, raw, context, token)
        elif kind == ResourceKind.CELL_CLASS:
            found = self._resolve_cell_class(generation, raw, context, token)
        elif kind in (ResourceKind.SCRIPT, ResourceKind.STYLE):
            found = self._resolve_asset(generation, raw, kind, context, token)
        elif kind == ResourceKind.TEMPLATE:
            found = self._resolve_template(generation, raw, context, token)
        elif kind == ResourceKind.EMAIL:
            found = self._resolve_email(generation, raw, context, token)
        else:
            found = []

        results = dedupe_and_sort(found)
        logger.debug(f"Resolved {kind.value} {raw!r} to {len(results)} file(s)")
        return results

    def find_files(
        self,
        text: str,
        context: FileContext,
        token: CancellationToken | None = None,
    ) -> list[FileInfo]:
        """Resolve every reference found in *text* and merge the results."""
        if is_asset_compress(context.path):
            references = find_asset_compress_references(text)
        else:
            references = find_references(text)

        found: list[FileInfo] = []
        for reference in references:
            found.extend(self.resolve_reference(reference, context, token))
        return dedupe_and_sort(found)

    def resolve_reference(
        self,
        reference: Reference,
        context: FileContext,
        token: CancellationToken | None = None,
    ) -> list[FileInfo]:
        if reference.pattern == "asset_compress":
            return self.resolve_asset_compress(reference.value, token)
        if reference.kind == ResourceKind.EMAIL and "Mailer" not in context.path:
            return []
        return self.resolve(reference.value, reference.kind, context, token)

    def hover(
        self,
        line_text: str,
        file_path: str,
        text: str | None = None,
        token: CancellationToken | None = None,
        column: int | None = None,
    ) -> list[FileInfo]:
        """Files related to the references on one line; empty when hover is off.

        With a cursor *column* only the reference whose call site covers it
        is resolved.
        """
        if not self.workspace.config.hover:
            return []
        context = self.context_for(file_path, text)
        if column is None:
            return self.find_files(line_text, context, token)

        reference = reference_at(line_text, column, context.path)
        if reference is None:
            return []
        return dedupe_and_sort(self.resolve_reference(reference, context, token))

    def document_links(
        self,
        text: str,
        file_path: str,
        token: CancellationToken | None = None,
    ) -> list[DocumentLink]:
        """One link per resolvable reference within the first ``max_lines_count`` lines."""
        config = self.workspace.config
        if not config.quick_jump:
            return []

        context = self.context_for(file_path, text)
        if is_asset_compress(context.path):
            references = find_asset_compress_references(text, config.max_lines_count)
        else:
            references = find_references(text, config.max_lines_count)

        links = []
        for reference in references:
            files = self.resolve_reference(reference, context, token)
            if files:
                links.append(DocumentLink(
                    line=reference.line,
                    start=reference.start,
                    end=reference.end,
                    target=files[0],
                ))
        logger.debug(f"Total document links found: {len(links)}")
        return links

    def references_on_line(self, line_text: str) -> list[Reference]:
        return find_line_references(line_text)

    def complete(self, line_prefix: str) -> list[CompletionItem]:
        return complete(self.workspace.generation, line_prefix)

    # --- Kind-specific resolution ---

    def _plugin_path(self, generation: IndexGeneration, plugin: str | None) -> str | None:
        if not plugin:
            return None
        plugin_path = generation.namespaces.resolve(plugin)
        if plugin_path:
            return plugin_path
        local = os.path.join(self.root, "plugins", plugin.replace("/", os.sep))
        return local if os.path.isdir(local) else None

    def _lookup(
        self,
        index: KeyIndex,
        keys: list[str],
        policy: LookupPolicy,
        token: CancellationToken | None,
    ) -> list[str]:
        found: list[str] = []
        for key in keys:
            check(token)
            if policy == LookupPolicy.SUFFIX_FIRST_MATCH:
                paths = self.element_key_match(index, key)
            else:
                paths = exact_match(index, key)
            if not paths:
                continue
            logger.debug(f"Paths found for key {key}: {list(paths)}")
            found.extend(paths)
            if policy != LookupPolicy.AGGREGATE:
                break
        return found

    def _infos(self, paths: Iterable[str]) -> list[FileInfo]:
        return [create_file_info(path, self.root) for path in paths]

    def _resolve_element(self, generation, raw, context, token) -> list[FileInfo]:
        descriptor = split_qualifier(raw)
        keys = candidate_keys(descriptor.path, descriptor.plugin, context.plugin)
        paths = self._lookup(generation.elements, keys, LOOKUP_POLICIES[ResourceKind.ELEMENT], token)
        if paths:
            return self._infos(paths)

        plugin = descriptor.plugin or context.plugin
        search_paths = construct_search_paths(
            self.root, ResourceKind.ELEMENT, plugin, self._plugin_path(generation, plugin),
        )
        return self._infos(search_files(search_paths, descriptor.path, token=token))

    def _resolve_cell(self, generation, raw, context, token) -> list[FileInfo]:
        normalized = raw if "::" in raw else f"{raw}::{DEFAULT_CELL_METHOD}"
        descriptor = split_qualifier(normalized)
        component = split_component_reference(normalized)

        keys = candidate_keys(descriptor.path, descriptor.plugin, context.plugin)
        paths = self._lookup(generation.cells, keys, LOOKUP_POLICIES[ResourceKind.CELL], token)

        plugin = component.plugin or context.plugin
        plugin_path = self._plugin_path(generation, plugin)
        if not paths:
            view_paths = construct_search_paths(self.root, ResourceKind.CELL, plugin, plugin_path)
            paths = search_files(view_paths, component.path, token=token)

        return self._infos(paths) + self._cell_class_files(component, plugin, plugin_path, token)

    def _resolve_cell_class(self, generation, raw, context, token) -> list[FileInfo]:
        normalized = raw if "::" in raw else f"{raw}::{DEFAULT_CELL_METHOD}"
        component = split_component_reference(normalized)
        plugin = component.plugin or context.plugin
        return self._cell_class_files(component, plugin, self._plugin_path(generation, plugin), token)

    def _cell_class_files(self, component, plugin, plugin_path, token) -> list[FileInfo]:
        search_paths = construct_search_paths(self.root, ResourceKind.CELL_CLASS, plugin, plugin_path)
        class_files = search_files(search_paths, component.class_name + "Cell", token=token)
        return [
            create_file_info(path, self.root, find_method_in_file(path, component.method_name))
            for path in class_files
        ]

    def _resolve_asset(self, generation, raw, kind, context, token) -> list[FileInfo]:
        if "://" in raw or raw.startswith("//"):
            return []
        descriptor = split_qualifier(raw)
        # the raw name is tried whole first: "jquery.min" is a file name, not Plugin.path
        keys = candidate_keys(raw, None, context.plugin)
        keys += candidate_keys(descriptor.path, descriptor.plugin, context.plugin)
        keys = list(dict.fromkeys(keys))
        paths = self._lookup(generation.index_for(kind), keys, LOOKUP_POLICIES[kind], token)
        if paths:
            return self._infos(paths)

        ext = f".{kind.value}"
        plugin, name = descriptor.plugin, descriptor.path
        plugin_path = self._plugin_path(generation, plugin)
        if plugin_path is None:
            plugin, name = context.plugin, raw
            plugin_path = self._plugin_path(generation, plugin)
        search_paths = construct_search_paths(self.root, kind, plugin, plugin_path)
        extensions = ("",) if name.lower().endswith(ext) else (ext,)
        return self._infos(search_files(search_paths, name, extensions, token))

    def _resolve_template(self, generation, raw, context, token) -> list[FileInfo]:
        text = self._context_text(context)
        if os.path.basename(context.path).endswith("Cell.php"):
            return self._resolve_cell_view(generation, raw, context, text, token)

        controller = extract_class_info(text, "Controller")
        if controller is None:
            return []

        descriptor = split_qualifier(raw)
        plugin = descriptor.plugin or context.plugin
        search_paths = construct_search_paths(
            self.root, ResourceKind.TEMPLATE, plugin, self._plugin_path(generation, plugin),
        )
        if descriptor.path.startswith("/"):
            view_path = descriptor.path.lstrip("/")
        else:
            parts = [controller.suffix.replace("\\", "/"), controller.name, underscore(descriptor.path)]
            view_path = "/".join(part for part in parts if part)
        return self._infos(search_files(search_paths, view_path, token=token))

    def _resolve_cell_view(self, generation, method_name, context, text, token) -> list[FileInfo]:
        cell = extract_class_info(text, "Cell")
        if cell is None:
            logger.debug(f"Not a valid Cell file: {context.path}")
            return []

        plugin = context.plugin
        search_paths = construct_search_paths(
            self.root, ResourceKind.CELL, plugin, self._plugin_path(generation, plugin),
        )
        cell_dir = "/".join(part for part in (cell.suffix.replace("\\", "/"), cell.name) if part)
        view_dirs = [os.path.join(path, cell_dir) for path in search_paths]
        return self._infos(search_files(view_dirs, underscore(method_name), token=token))

    def _resolve_email(self, generation, raw, context, token) -> list[FileInfo]:
        descriptor = split_qualifier(raw)
        plugin = descriptor.plugin or context.plugin
        search_paths = construct_search_paths(
            self.root, ResourceKind.EMAIL, plugin, self._plugin_path(generation, plugin),
        )
        files = []
        for variant in ("text", "html"):
            files += search_files([os.path.join(p, variant) for p in search_paths], descriptor.path, token=token)
        return self._infos(files)

    def resolve_asset_compress(self, asset: str, token: CancellationToken | None = None) -> list[FileInfo]:
        """Resolve one ``files[]`` entry of asset_compress.ini.

        ``p:Plugin:path`` / ``plugin:Plugin:path`` point into the plugin's
        webroot; anything else is relative to the app webroot. Paths without
        a leading ``/`` or scope directory get ``js/`` or ``css/`` prepended.
        """
        check(token)
        generation = self.workspace.generation
        scope = "css" if os.path.splitext(asset)[1].lower() == ".css" else "js"

        plugin_match = re.match(r"^(?:p|plugin):([^:]+):(.+)$", asset)
        if plugin_match:
            plugin_root = self._plugin_path(generation, plugin_match.group(1))
            if plugin_root is None:
                return []
            file_path = plugin_match.group(2)
            webroot = os.path.join(plugin_root, "webroot")
            if file_path.startswith("/") or file_path.startswith(scope):
                full_path = os.path.join(webroot, file_path.lstrip("/"))
            else:
                full_path = os.path.join(webroot, scope, file_path)
        else:
            webroot = os.path.join(self.root, "webroot")
            if asset.startswith("/"):
                full_path = os.path.join(webroot, asset.lstrip("/"))
            else:
                full_path = os.path.join(webroot, scope, asset)

        if not os.path.isfile(full_path):
            logger.debug(f"asset_compress entry {asset!r} not found at {full_path}")
            return []
        return [create_file_info(full_path, self.root)]

    def _context_text(self, context: FileContext) -> str:
        if context.text is None:
            try:
                with open(context.path, encoding="utf-8", errors="replace") as f:
                    context.text = f.read()
            except OSError as e:
                logger.warning(f"Failed to read {context.path}: {e}")
                context.text = ""
        return context.text
