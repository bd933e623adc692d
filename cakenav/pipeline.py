"""Sequential rebuild orchestrator with timing."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from cakenav.cancellation import CancellationToken, check
from cakenav.config import IndexStats, ResourceKind
from cakenav.index.key_index import KeyIndex
from cakenav.index.namespaces import NamespaceMap, NamespaceResolver
from cakenav.phases.assets import run_asset_phase
from cakenav.phases.cells import run_cell_phase
from cakenav.phases.elements import run_element_phase


_PHASE_LABELS = {
    "namespaces": "Parsing namespace declarations",
    "elements": "Indexing elements",
    "cells": "Indexing cells",
    "assets": "Indexing scripts and styles",
}


@dataclass(frozen=True)
class IndexGeneration:
    """One fully built set of indices; never mutated after construction."""
    number: int = 0
    namespaces: NamespaceMap = field(default_factory=NamespaceMap)
    elements: KeyIndex = field(default_factory=KeyIndex)
    cells: KeyIndex = field(default_factory=KeyIndex)
    scripts: KeyIndex = field(default_factory=KeyIndex)
    styles: KeyIndex = field(default_factory=KeyIndex)
    timings: dict[str, float] = field(default_factory=dict)

    def index_for(self, kind: ResourceKind) -> KeyIndex | None:
        return {
            ResourceKind.ELEMENT: self.elements,
            ResourceKind.CELL: self.cells,
            ResourceKind.SCRIPT: self.scripts,
            ResourceKind.STYLE: self.styles,
        }.get(kind)

    def stats(self) -> IndexStats:
        return IndexStats(
            elements=len(self.elements),
            cells=len(self.cells),
            scripts=len(self.scripts),
            styles=len(self.styles),
            namespaces=len(self.namespaces),
            timings=dict(self.timings),
        )


def run_pipeline(
    root: str,
    namespace_resolver: NamespaceResolver,
    number: int,
    token: CancellationToken | None = None,
    progress_callback=None,
) -> IndexGeneration:
    """Re-parse namespaces (forced refresh) and rebuild every index.

    Args:
        root: Workspace root.
        namespace_resolver: Cache refreshed as the first phase.
        number: Generation number stamped on the result.
        token: Optional cancellation token, polled between and inside phases.
        progress_callback: Optional callable(phase_name, label) invoked
            when each phase starts. Used by the CLI for Rich progress.
    """
    results: dict[str, object] = {}
    timings: dict[str, float] = {}

    phases = [
        ("namespaces", lambda: namespace_resolver.load(refresh=True)),
        ("elements", lambda: run_element_phase(root, results["namespaces"], token)),
        ("cells", lambda: run_cell_phase(root, results["namespaces"], token)),
        ("assets", lambda: run_asset_phase(root, results["namespaces"], token)),
    ]

    for name, phase_fn in phases:
        check(token)
        if progress_callback:
            progress_callback(name, _PHASE_LABELS.get(name, name))
        start = time.monotonic()
        results[name] = phase_fn()
        timings[name] = time.monotonic() - start

    scripts, styles = results["assets"]
    return IndexGeneration(
        number=number,
        namespaces=results["namespaces"],
        elements=results["elements"],
        cells=results["cells"],
        scripts=scripts,
        styles=styles,
        timings=timings,
    )
