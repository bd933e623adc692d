"""Filesystem watching that triggers full index rebuilds."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cakenav.index.namespaces import AUTOLOAD_PSR4
from cakenav.workspace import Workspace

logger = logging.getLogger(__name__)

WATCHED_TREES = ("templates", "webroot", "plugins")
MANIFEST_FILES = ("composer.json", "composer.lock")


class InvalidationHandler(FileSystemEventHandler):
    """Maps watchdog events onto full rebuilds.

    Create/delete anywhere under a ``templates``, ``webroot`` or ``plugins``
    directory, and create/modify of the Composer manifests or the PSR-4
    autoload table, each trigger one synchronous rebuild. Events are not
    debounced or coalesced.
    """

    def __init__(self, root: str, on_invalidate: Callable[[str], None]) -> None:
        super().__init__()
        self.root = os.path.abspath(root)
        self.on_invalidate = on_invalidate
        self._manifests = {os.path.join(self.root, name) for name in MANIFEST_FILES}
        self._manifests.add(os.path.join(self.root, AUTOLOAD_PSR4))

    def _in_watched_tree(self, path: str) -> bool:
        try:
            rel = os.path.relpath(path, self.root)
        except ValueError:
            return False
        if rel.startswith(".."):
            return False
        return any(part in WATCHED_TREES for part in Path(rel).parts[:-1])

    def is_watched_root(self, path: str) -> bool:
        """True for a top-level ``templates``, ``webroot`` or ``plugins`` directory."""
        return os.path.dirname(os.path.abspath(path)) == self.root and os.path.basename(path) in WATCHED_TREES

    def _is_manifest(self, path: str) -> bool:
        return os.path.abspath(path) in self._manifests

    def _fire(self, reason: str, path: str) -> None:
        logger.info(f"{reason}: {path}")
        try:
            self.on_invalidate(path)
        except Exception as e:
            logger.exception(f"Error rebuilding indices after change to {path}: {e}")

    def on_created(self, event: FileSystemEvent) -> None:
        path = os.fsdecode(event.src_path)
        if self._is_manifest(path):
            self._fire("Composer file created", path)
        elif self._in_watched_tree(path):
            self._fire("File created", path)
        elif event.is_directory and self.is_watched_root(path):
            self._fire("Watched directory created", path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        path = os.fsdecode(event.src_path)
        if self._in_watched_tree(path):
            self._fire("File deleted", path)

    def on_modified(self, event: FileSystemEvent) -> None:
        path = os.fsdecode(event.src_path)
        if not event.is_directory and self._is_manifest(path):
            self._fire("Composer file changed", path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # a move is a delete of the source plus a create of the destination
        source = os.fsdecode(event.src_path)
        dest = os.fsdecode(getattr(event, "dest_path", "") or "")
        if self._in_watched_tree(source) or (dest and (self._in_watched_tree(dest) or self._is_manifest(dest))):
            self._fire("File moved", dest or source)


class ProjectWatcher:
    """Owns a watchdog observer bound to one workspace."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self.handler = InvalidationHandler(workspace.root, self._rebuild)
        self._observer: Observer | None = None

    def _rebuild(self, path: str) -> None:
        # a tree created after start needs its own recursive watch
        if self._observer is not None and os.path.isdir(path) and self.handler.is_watched_root(path):
            self._observer.schedule(self.handler, path, recursive=True)
        self.workspace.rebuild()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def watch_targets(self) -> list[tuple[str, bool]]:
        """``(directory, recursive)`` pairs handed to the observer.

        Only the watched trees are recursive. The root and ``vendor/composer``
        are watched flat for the Composer files.
        """
        root = self.workspace.root
        targets = [(root, False)]
        for tree in WATCHED_TREES:
            directory = os.path.join(root, tree)
            if os.path.isdir(directory):
                targets.append((directory, True))
        composer_dir = os.path.dirname(os.path.join(root, AUTOLOAD_PSR4))
        if os.path.isdir(composer_dir):
            targets.append((composer_dir, False))
        return targets

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        for directory, recursive in self.watch_targets():
            observer.schedule(self.handler, directory, recursive=recursive)
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self.workspace.root} for changes")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def __enter__(self) -> ProjectWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
