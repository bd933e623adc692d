"""Workspace session: owns the namespace cache and the current index generation."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from cakenav.cancellation import CancellationToken, OperationCancelled
from cakenav.config import ResolverConfig
from cakenav.index.namespaces import NamespaceResolver
from cakenav.pipeline import IndexGeneration, run_pipeline

logger = logging.getLogger(__name__)


class Workspace:
    """Explicit context object passed to the resolver and the watcher.

    Rebuilds are serialised and publish a new :class:`IndexGeneration` with a
    single reference assignment, so a reader that grabs ``generation`` once
    sees one complete set of indices for its whole operation.
    """

    def __init__(self, root: str, config: ResolverConfig | None = None) -> None:
        self.root = os.path.abspath(root)
        self.config = config or ResolverConfig()
        self.namespace_resolver = NamespaceResolver(self.root)
        self._generation = IndexGeneration()
        self._rebuild_lock = threading.Lock()
        self._counter = 0

    @property
    def generation(self) -> IndexGeneration:
        return self._generation

    def rebuild(
        self,
        token: CancellationToken | None = None,
        progress_callback=None,
    ) -> bool:
        """Full rebuild. Returns False (keeping the old generation) if cancelled."""
        with self._rebuild_lock:
            self._counter += 1
            try:
                generation = run_pipeline(
                    self.root, self.namespace_resolver, self._counter, token, progress_callback,
                )
            except OperationCancelled:
                logger.info(f"Rebuild {self._counter} cancelled; keeping generation {self._generation.number}")
                return False
            self._generation = generation

        stats = generation.stats()
        logger.info(
            f"Rebuilt generation {generation.number}: {stats.elements} element keys, "
            f"{stats.cells} cell keys, {stats.scripts} js keys, {stats.styles} css keys"
        )
        return True

    def plugin_for(self, file_path: str) -> str | None:
        """Plugin owning *file_path*: a ``plugins/<Name>/`` segment, else the namespace table."""
        path = os.path.abspath(file_path)
        try:
            rel = os.path.relpath(path, self.root)
        except ValueError:
            rel = path
        if rel.startswith(".."):
            rel = path

        parts = Path(rel).parts
        for i, part in enumerate(parts):
            if part == "plugins" and i + 2 < len(parts):
                return parts[i + 1]

        return self._generation.namespaces.reverse_lookup(path)
