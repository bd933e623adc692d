"""Tests for workspace rebuilds and index generations."""

from __future__ import annotations

import os
import threading

from cakenav.cancellation import CancellationToken
from cakenav.index.namespaces import NamespaceResolver
from cakenav.pipeline import IndexGeneration, run_pipeline
from cakenav.workspace import Workspace

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
CAKE_APP = os.path.abspath(os.path.join(FIXTURES_DIR, "cake_app"))


def _snapshot(generation: IndexGeneration) -> dict:
    return {
        "namespaces": dict(generation.namespaces.items()),
        "elements": generation.elements.as_dict(),
        "cells": generation.cells.as_dict(),
        "scripts": generation.scripts.as_dict(),
        "styles": generation.styles.as_dict(),
    }


class TestPipeline:
    def test_phases_report_progress_in_order(self):
        phases = []
        run_pipeline(CAKE_APP, NamespaceResolver(CAKE_APP), 1, progress_callback=lambda name, label: phases.append(name))
        assert phases == ["namespaces", "elements", "cells", "assets"]

    def test_timings_and_stats(self):
        generation = run_pipeline(CAKE_APP, NamespaceResolver(CAKE_APP), 7)
        stats = generation.stats()

        assert generation.number == 7
        assert set(generation.timings) == {"namespaces", "elements", "cells", "assets"}
        assert stats.namespaces == 3
        assert stats.elements == 5
        assert stats.cells == 4

    def test_empty_generation(self):
        generation = IndexGeneration()
        assert generation.number == 0
        assert generation.stats().elements == 0


class TestWorkspace:
    def test_starts_empty(self):
        workspace = Workspace(CAKE_APP)
        assert workspace.generation.number == 0
        assert len(workspace.generation.elements) == 0

    def test_rebuild_publishes_new_generation(self):
        workspace = Workspace(CAKE_APP)
        before = workspace.generation

        assert workspace.rebuild() is True
        assert workspace.generation is not before
        assert workspace.generation.number == 1
        assert "widgets/card" in workspace.generation.elements

    def test_rebuild_is_idempotent(self):
        workspace = Workspace(CAKE_APP)
        workspace.rebuild()
        first = _snapshot(workspace.generation)
        workspace.rebuild()

        assert _snapshot(workspace.generation) == first
        assert workspace.generation.number == 2

    def test_cancelled_rebuild_keeps_previous_generation(self):
        workspace = Workspace(CAKE_APP)
        workspace.rebuild()
        previous = workspace.generation

        token = CancellationToken()
        token.cancel()
        assert workspace.rebuild(token) is False
        assert workspace.generation is previous

    def test_rebuild_picks_up_new_files(self, tmp_path):
        element_dir = tmp_path / "templates" / "element"
        element_dir.mkdir(parents=True)
        workspace = Workspace(str(tmp_path))
        workspace.rebuild()
        assert "footer" not in workspace.generation.elements

        (element_dir / "footer.php").write_text("")
        workspace.rebuild()
        assert "footer" in workspace.generation.elements

    def test_concurrent_rebuilds_are_serialised(self):
        workspace = Workspace(CAKE_APP)
        threads = [threading.Thread(target=workspace.rebuild) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert workspace.generation.number in range(1, 5)
        assert len(workspace.generation.elements) == 5

    def test_plugin_for(self):
        workspace = Workspace(CAKE_APP)
        workspace.rebuild()

        assert workspace.plugin_for(os.path.join(CAKE_APP, "plugins", "Blog", "templates", "x.php")) == "Blog"
        assert workspace.plugin_for(os.path.join(CAKE_APP, "templates", "Pages", "home.php")) == "App"

    def test_plugin_for_without_namespaces(self, tmp_path):
        workspace = Workspace(str(tmp_path))
        assert workspace.plugin_for(str(tmp_path / "templates" / "Pages" / "home.php")) is None
        assert workspace.plugin_for(str(tmp_path / "plugins" / "Shop" / "src" / "a.php")) == "Shop"
