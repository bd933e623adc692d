"""Fixed call-site patterns that produce resource references."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from cakenav.config import Reference, ResourceKind

ASSET_COMPRESS_INI = "asset_compress.ini"


@dataclass(frozen=True)
class SearchPattern:
    name: str
    regex: re.Pattern
    kind: ResourceKind


def _pattern(name: str, source: str, kind: ResourceKind) -> SearchPattern:
    return SearchPattern(name=name, regex=re.compile(source), kind=kind)


# Each pattern has exactly one capture group: the raw reference.
SEARCH_PATTERNS: tuple[SearchPattern, ...] = (
    _pattern("render", r"""\$this->render\(['"](.+?)['"]\)""", ResourceKind.TEMPLATE),
    _pattern("method", r"\bfunction\s+(\w+)\s*\(", ResourceKind.TEMPLATE),
    _pattern("element_call", r"""\$this->element\(['"](.+?)['"]""", ResourceKind.ELEMENT),
    _pattern("element_array", r"""['"]element['"]\s*=>\s*['"](.+?)['"]""", ResourceKind.ELEMENT),
    _pattern("cell", r"""\$this->cell\(['"](.+?)['"]""", ResourceKind.CELL),
    _pattern("script_helper", r"""\$this->Html->script\(['"](.+?)['"](?:,|\))""", ResourceKind.SCRIPT),
    _pattern("script_tag", r"""<script[^>]*src=['"](.+?)['"]""", ResourceKind.SCRIPT),
    _pattern("css_helper", r"""\$this->Html->css\(['"](.+?)['"](?:,|\))""", ResourceKind.STYLE),
    _pattern("css_tag", r"""<link[^>]*?href=['"](.+?)['"][^>]*""", ResourceKind.STYLE),
    _pattern("set_template", r"""->setTemplate\(['"](.+?)['"]\)""", ResourceKind.EMAIL),
)

_ASSET_COMPRESS_LINE = re.compile(r"^\s*files\[\]\s*=\s*(.*?)\s*$")


def is_asset_compress(file_path: str) -> bool:
    return os.path.basename(file_path) == ASSET_COMPRESS_INI


def parse_asset_compress_line(line: str) -> tuple[str, int] | None:
    """Return ``(asset_path, column)`` for a ``files[] = <path>`` line."""
    match = _ASSET_COMPRESS_LINE.match(line)
    if not match or not match.group(1):
        return None
    return match.group(1), match.start(1)


def find_line_references(line_text: str, line_no: int = 0) -> list[Reference]:
    """All captures of all patterns in one line; patterns fire independently."""
    references = []
    for pattern in SEARCH_PATTERNS:
        for match in pattern.regex.finditer(line_text):
            references.append(Reference(
                pattern=pattern.name,
                kind=pattern.kind,
                value=match.group(1),
                line=line_no,
                start=match.start(1),
                end=match.end(1),
            ))
    return references


def find_references(text: str, max_lines: int | None = None) -> list[Reference]:
    """Scan *text* line by line; lines past *max_lines* are never scanned."""
    references = []
    for line_no, line_text in enumerate(text.splitlines()):
        if max_lines is not None and line_no >= max_lines:
            break
        references.extend(find_line_references(line_text, line_no))
    return references


def find_asset_compress_references(text: str, max_lines: int | None = None) -> list[Reference]:
    """Every ``files[] =`` line of an asset_compress.ini is a literal asset path."""
    references = []
    for line_no, line_text in enumerate(text.splitlines()):
        if max_lines is not None and line_no >= max_lines:
            break
        parsed = parse_asset_compress_line(line_text)
        if parsed is None:
            continue
        value, column = parsed
        kind = ResourceKind.STYLE if value.lower().endswith(".css") else ResourceKind.SCRIPT
        references.append(Reference(
            pattern="asset_compress",
            kind=kind,
            value=value,
            line=line_no,
            start=column,
            end=column + len(value),
        ))
    return references


def reference_at(line_text: str, column: int, file_path: str = "") -> Reference | None:
    """The reference whose call site covers *column* in *line_text*, if any."""
    if file_path and is_asset_compress(file_path):
        references = find_asset_compress_references(line_text)
        return references[0] if references else None

    for pattern in SEARCH_PATTERNS:
        for match in pattern.regex.finditer(line_text):
            if match.start() <= column <= match.end():
                return Reference(
                    pattern=pattern.name,
                    kind=pattern.kind,
                    value=match.group(1),
                    start=match.start(1),
                    end=match.end(1),
                )
    return None
