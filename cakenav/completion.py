"""Prefix completion over the index keys."""

from __future__ import annotations

import logging
import re

from cakenav.config import CompletionItem, ResourceKind
from cakenav.pipeline import IndexGeneration

logger = logging.getLogger(__name__)

# Call sites that open a completion, matched against the text left of the cursor.
_COMPLETION_TRIGGERS: tuple[tuple[re.Pattern, ResourceKind], ...] = (
    (re.compile(r"""\$this->element\s*\(\s*['"](?P<prefix>[\w/.]*)$"""), ResourceKind.ELEMENT),
    (re.compile(r"""\$this->cell\s*\(\s*['"](?P<prefix>[\w/.:]*)$"""), ResourceKind.CELL),
    (re.compile(r"""\$this->Html->script\s*\(\s*['"](?P<prefix>[\w/.-]*)$"""), ResourceKind.SCRIPT),
    (re.compile(r"""\$this->Html->css\s*\(\s*['"](?P<prefix>[\w/.-]*)$"""), ResourceKind.STYLE),
)


def common_prefix_length(typed: str, completion: str) -> int:
    """Length of the longest case-insensitive common prefix."""
    length = 0
    for a, b in zip(typed, completion):
        if a.lower() != b.lower():
            break
        length += 1
    return length


def matching_names(generation: IndexGeneration, kind: ResourceKind, prefix: str) -> list[str]:
    """Index keys of *kind* starting with *prefix*, case-insensitively."""
    index = generation.index_for(kind)
    if index is None:
        return []
    lowered = prefix.lower()
    return [key for key in index.keys() if key.lower().startswith(lowered)]


def complete(generation: IndexGeneration, line_prefix: str) -> list[CompletionItem]:
    """Completion items for the call site at the end of *line_prefix*."""
    for trigger, kind in _COMPLETION_TRIGGERS:
        match = trigger.search(line_prefix)
        if not match:
            continue
        prefix = match.group("prefix")
        names = matching_names(generation, kind, prefix)
        logger.debug(f"Found {len(names)} {kind.value} completions for prefix {prefix!r}")

        items = []
        for name in names:
            shared = common_prefix_length(prefix, name)
            items.append(CompletionItem(
                label=name,
                insert_text=name[shared:],
                kind=kind,
                replace_start=len(line_prefix) - len(prefix) + shared,
            ))
        return items
    return []
