"""Core data types and configuration for cakenav resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ResourceKind(str, Enum):
    ELEMENT = "element"
    CELL = "cell"
    CELL_CLASS = "cellClass"
    TEMPLATE = "template"
    EMAIL = "email"
    SCRIPT = "js"
    STYLE = "css"


class LookupPolicy(str, Enum):
    """How a kind's candidate keys are matched against its index."""
    FIRST_MATCH = "first_match"
    AGGREGATE = "aggregate"
    SUFFIX_FIRST_MATCH = "suffix_first_match"


LOOKUP_POLICIES: dict[ResourceKind, LookupPolicy] = {
    ResourceKind.ELEMENT: LookupPolicy.SUFFIX_FIRST_MATCH,
    ResourceKind.CELL: LookupPolicy.AGGREGATE,
    ResourceKind.SCRIPT: LookupPolicy.FIRST_MATCH,
    ResourceKind.STYLE: LookupPolicy.FIRST_MATCH,
}


@dataclass(frozen=True)
class SymbolLocation:
    """Zero-based line/column inside a file."""
    line: int
    column: int


@dataclass(frozen=True)
class FileInfo:
    name: str
    path: str
    show_path: str
    method_location: SymbolLocation | None = None


@dataclass(frozen=True)
class ReferenceDescriptor:
    plugin: str | None
    path: str


@dataclass(frozen=True)
class ComponentReference:
    plugin: str | None
    path: str
    class_name: str
    method_name: str


@dataclass(frozen=True)
class ClassInfo:
    """Controller or cell class identity read from PHP source."""
    name: str
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class Reference:
    """Raw reference captured from source text."""
    pattern: str
    kind: ResourceKind
    value: str
    line: int = 0
    start: int = 0
    end: int = 0


@dataclass
class FileContext:
    """The calling file: its path, optional text and owning plugin."""
    path: str
    text: str | None = None
    plugin: str | None = None


@dataclass(frozen=True)
class DocumentLink:
    line: int
    start: int
    end: int
    target: FileInfo


@dataclass(frozen=True)
class CompletionItem:
    label: str
    insert_text: str
    kind: ResourceKind
    replace_start: int = 0


@dataclass
class ResolverConfig:
    enable_logging: bool = False
    hover: bool = True
    quick_jump: bool = True
    max_lines_count: int = 1000

    # editor setting name -> attribute
    _SETTING_NAMES = {
        "enableLogging": "enable_logging",
        "hover": "hover",
        "quickJump": "quick_jump",
        "maxLinesCount": "max_lines_count",
    }

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> ResolverConfig:
        """Build a config from editor-style setting names.

        Unknown keys are ignored so a full settings section can be passed in.
        """
        values: dict[str, Any] = {}
        for key, value in settings.items():
            attr = cls._SETTING_NAMES.get(key, key)
            if attr in ("enable_logging", "hover", "quick_jump"):
                values[attr] = bool(value)
            elif attr == "max_lines_count":
                values[attr] = max(0, int(value))
        return cls(**values)


@dataclass
class IndexStats:
    elements: int = 0
    cells: int = 0
    scripts: int = 0
    styles: int = 0
    namespaces: int = 0
    timings: dict[str, float] = field(default_factory=dict)
