"""JSON serialisation and display labels for resolved files."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from cakenav.config import DocumentLink, FileInfo
from cakenav.pipeline import IndexGeneration


def describe_file(info: FileInfo) -> str:
    """Short label for a resolved file, as shown in hover text."""
    if info.name.endswith("Cell.php"):
        return "Cell Class"
    if info.name.endswith(".js"):
        return "JS File"
    if info.name.endswith(".css"):
        return "CSS File"
    if info.name.endswith(".php") and "Controller" in info.show_path:
        return "Controller"
    if "templates" in info.show_path:
        if "/cell/" in info.show_path:
            return "Cell View"
        if "/element/" in info.show_path:
            return "Element"
        if "/email/" in info.show_path:
            return "Email Template"
        return "View"
    return "File"


def file_info_to_dict(info: FileInfo) -> dict[str, Any]:
    data = asdict(info)
    data["label"] = describe_file(info)
    return data


def link_to_dict(link: DocumentLink) -> dict[str, Any]:
    return {
        "line": link.line,
        "start": link.start,
        "end": link.end,
        "target": file_info_to_dict(link.target),
    }


def generation_to_dict(generation: IndexGeneration) -> dict[str, Any]:
    return {
        "generation": generation.number,
        "stats": asdict(generation.stats()),
        "namespaces": dict(generation.namespaces.items()),
        "elements": generation.elements.as_dict(),
        "cells": generation.cells.as_dict(),
        "scripts": generation.scripts.as_dict(),
        "styles": generation.styles.as_dict(),
    }


def write_output(data: Any, output_path: str) -> None:
    """Write *data* as indented JSON, creating parent directories."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
