"""Tests for the interactive IncludeTreeApp, driven through Textual's pilot."""

from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Callable
from pathlib import Path

from rich.text import Text
from textual.pilot import Pilot
from textual.widgets import Input, Tree

from inctree.core.tree import IncludeNode, IncludeTree
from inctree.tui.app import IncludeTreeApp, SaveGraphScreen, _populate_textual_tree


def _node(name: str, children: list[IncludeNode] | None = None) -> IncludeNode:
    return IncludeNode(raw_path=f"/inc/{name}", display_name=name, children=children or [])


def _sample_tree() -> IncludeTree:
    root = IncludeNode.root()
    root.children = [_node("a.h", [_node("b.h")]), _node("foo[bar].h"), _node("c.h")]
    return IncludeTree(root=root, num_includes=4, source="main.cpp")


class _GatedLoader:
    """Loader that blocks its worker thread until released, returning queued results."""

    def __init__(self, *results: IncludeTree | None, released: bool = False) -> None:
        self.calls = 0
        self.release = threading.Event()
        if released:
            self.release.set()
        self._results = list(results)

    def __call__(self) -> IncludeTree | None:
        self.calls += 1
        self.release.wait(timeout=10)
        return self._results.pop(0) if self._results else None


async def _wait_until(pilot: Pilot, condition: Callable[[], bool], attempts: int = 200) -> None:
    for _ in range(attempts):
        if condition():
            return
        await pilot.pause(0.02)
    raise AssertionError("condition not reached")


async def _wait_loaded(app: IncludeTreeApp, pilot: Pilot) -> None:
    await app.workers.wait_for_complete()
    await _wait_until(pilot, lambda: not app._loading)


class TestRefresh:
    """Tests for action_refresh and loader completion."""

    def test_refresh_while_loading_runs_loader_once(self) -> None:
        loader = _GatedLoader(_sample_tree())

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                try:
                    await _wait_until(pilot, lambda: loader.calls == 1)
                    await pilot.press("r")
                    await pilot.press("r")
                    await pilot.pause()
                    assert loader.calls == 1
                    assert app._loading
                    assert app._tree is None
                finally:
                    loader.release.set()
                await _wait_loaded(app, pilot)
                assert loader.calls == 1
                assert app._tree is not None
                assert app._tree.num_includes == 4

        asyncio.run(scenario())

    def test_failed_refresh_drops_previous_tree(self) -> None:
        loader = _GatedLoader(_sample_tree(), None, released=True)

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                await _wait_loaded(app, pilot)
                assert app._tree is not None

                loader.release.clear()
                try:
                    await pilot.press("r")
                    await _wait_until(pilot, lambda: loader.calls == 2)
                    # cleared as soon as the new run starts
                    assert app._tree is None
                finally:
                    loader.release.set()
                await _wait_loaded(app, pilot)
                assert app._tree is None
                tree = app.query_one("#include_tree", Tree)
                assert [c.label.plain for c in tree.root.children] == ["No includes"]

        asyncio.run(scenario())

    def test_labels_show_display_names_verbatim(self) -> None:
        loader = _GatedLoader(_sample_tree(), released=True)

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                await _wait_loaded(app, pilot)
                tree = app.query_one("#include_tree", Tree)
                labels = [c.label.plain for c in tree.root.children]
                assert labels == ["a.h", "foo[bar].h", "c.h"]
                assert tree.root.children[1].data.display_name == "foo[bar].h"

        asyncio.run(scenario())


class TestDetailsPanel:
    """Tests for the details panel text."""

    def test_node_paths_are_not_markup(self) -> None:
        app = IncludeTreeApp(loader=lambda: None)
        node = _node("foo[bar].h", [_node("[b].h")])
        plain = Text.from_markup(app._format_node(node)).plain
        assert "foo[bar].h" in plain
        assert "/inc/foo[bar].h" in plain

    def test_summary_source_is_not_markup(self) -> None:
        app = IncludeTreeApp(loader=lambda: None)
        tree = _sample_tree()
        tree.source = "src/[gen]/main.cpp"
        plain = Text.from_markup(app._format_summary(tree)).plain
        assert "src/[gen]/main.cpp" in plain


class TestSaveGraph:
    """Tests for action_save_graph."""

    def test_no_tree_writes_nothing(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        loader = _GatedLoader(None, released=True)

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                await _wait_loaded(app, pilot)
                await pilot.press("s")
                await pilot.pause()
                assert not isinstance(app.screen, SaveGraphScreen)

        asyncio.run(scenario())
        assert os.listdir(tmp_path) == []

    def test_no_tree_while_loading(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        loader = _GatedLoader(_sample_tree())

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                try:
                    await _wait_until(pilot, lambda: loader.calls == 1)
                    await pilot.press("s")
                    await pilot.pause()
                    assert not isinstance(app.screen, SaveGraphScreen)
                finally:
                    loader.release.set()
                await _wait_loaded(app, pilot)

        asyncio.run(scenario())
        assert os.listdir(tmp_path) == []

    def test_saves_requested_file(self, tmp_path: Path) -> None:
        loader = _GatedLoader(_sample_tree(), released=True)
        out = tmp_path / "graph.dot"

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader, title="main.cpp")
            async with app.run_test() as pilot:
                await _wait_loaded(app, pilot)
                await pilot.press("s")
                await pilot.pause()
                assert isinstance(app.screen, SaveGraphScreen)
                app.screen.query_one("#save_input", Input).value = str(out)
                await pilot.press("enter")
                await _wait_until(pilot, out.exists)

        asyncio.run(scenario())
        text = out.read_text(encoding="utf-8")
        assert text.startswith("digraph includes")
        assert "foo[bar].h" in text


class TestPopulateTextualTree:
    """Tests for _populate_textual_tree inside a running app."""

    def _run(self, check: Callable[[Tree], None]) -> None:
        loader = _GatedLoader(None, released=True)

        async def scenario() -> None:
            app = IncludeTreeApp(loader=loader)
            async with app.run_test() as pilot:
                await _wait_loaded(app, pilot)
                tree = app.query_one("#include_tree", Tree)
                app._clear_tree(tree)
                check(tree)

        asyncio.run(scenario())

    def test_one_item_per_include(self) -> None:
        def check(tree: Tree) -> None:
            _populate_textual_tree(tree.root, _sample_tree().root)
            a, foo, c = tree.root.children
            assert [n.label.plain for n in a.children] == ["b.h"]
            assert a.allow_expand
            assert not foo.allow_expand
            assert foo.data.raw_path == "/inc/foo[bar].h"
            assert c.label.plain == "c.h"

        self._run(check)

    def test_node_cap(self) -> None:
        def check(tree: Tree) -> None:
            _populate_textual_tree(tree.root, _sample_tree().root, max_nodes=2)
            labels = [n.label.plain for n in tree.root.children]
            assert labels[0] == "a.h"
            assert labels[-1] == "… truncated (2 nodes max)"
            assert [n.label.plain for n in tree.root.children[0].children] == ["b.h"]

        self._run(check)

    def test_depth_cap(self) -> None:
        def check(tree: Tree) -> None:
            _populate_textual_tree(tree.root, _sample_tree().root, max_depth=1)
            a = tree.root.children[0]
            assert [n.label.plain for n in a.children] == ["b.h …"]
            assert a.children[0].data is None

        self._run(check)
