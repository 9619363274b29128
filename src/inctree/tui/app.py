"""Textual TUI for browsing include trees and saving include graphs."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, LoadingIndicator, Static, Tree
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from inctree.api import export_graph
from inctree.core.errors import NoTreeToExportError
from inctree.core.graph import GraphFormat
from inctree.core.tree import IncludeTree

# Limits to avoid huge trees (a single TU can pull in thousands of headers)
MAX_TREE_DEPTH = 64
MAX_TREE_NODES = 5000
EXPAND_DEPTH_DEFAULT = 1
DEFAULT_GRAPH_FILE = "includes.dgml"

COLOR_HEADER = "bold magenta"
COLOR_FILE = "white"
COLOR_STATS = "cyan"
COLOR_PATH = "dim"


def _count_nodes(node: Any) -> int:
    """Count nodes in tree (for cap)."""
    n = 1
    for c in getattr(node, "children", []):
        n += _count_nodes(c)
    return n


def _node_stats(node: Any) -> tuple[int, int, int]:
    """Return (direct_children, total_descendants, max_depth) for a node."""
    children = getattr(node, "children", []) or []
    direct = len(children)
    total = 0
    max_d = 0
    for c in children:
        sub_direct, sub_total, sub_depth = _node_stats(c)
        total += 1 + sub_total
        max_d = max(max_d, 1 + sub_depth)
    return direct, total, max_d


def _populate_textual_tree(
    tn: TreeNode,
    node: Any,
    *,
    depth: int = 0,
    max_depth: int = MAX_TREE_DEPTH,
    max_nodes: int = MAX_TREE_NODES,
    node_count: list[int] | None = None,
) -> None:
    """Recursively add IncludeNode children, one widget item per include; cap depth and total nodes."""
    if node_count is None:
        node_count = [0]
    for child in getattr(node, "children", []):
        if node_count[0] >= max_nodes:
            tn.add_leaf(f"[dim]… truncated ({max_nodes} nodes max)[/]")
            return
        if depth >= max_depth:
            tn.add_leaf(f"[dim]{escape(child.display_name)} …[/]")
            continue
        node_count[0] += 1
        label = f"[{COLOR_FILE}]{escape(child.display_name)}[/]"
        if child.children:
            child_tn = tn.add(label, expand=False)
        else:
            child_tn = tn.add_leaf(label)
        child_tn.data = child
        _populate_textual_tree(
            child_tn,
            child,
            depth=depth + 1,
            max_depth=max_depth,
            max_nodes=max_nodes,
            node_count=node_count,
        )


def _expand_to_depth(tn: TreeNode, depth: int, current: int = 0) -> None:
    """Expand tree nodes up to given depth (1 = root only)."""
    if current >= depth:
        return
    tn.expand()
    for child in tn.children:
        _expand_to_depth(child, depth, current + 1)


class SearchScreen(ModalScreen[str | None]):
    """Modal to search for files in the tree. Keyboard-only."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    SearchScreen {
        align: center middle;
        padding: 2 4;
    }
    SearchScreen #search_title {
        text-align: center;
        padding-bottom: 1;
    }
    SearchScreen #search_input {
        width: 60;
        margin: 1 0;
    }
    SearchScreen #search_hint {
        text-align: center;
        padding-top: 1;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._input: Input | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(
                "[bold cyan]Search[/]\n\nType a file name or partial path to find in the tree.",
                id="search_title",
                markup=True,
            )
            yield Input(placeholder="header name...", id="search_input")
            yield Static(
                "[dim]Enter[/] = Search  ·  [dim]Escape[/] = Cancel\n"
                "[dim]After search: [bold]n[/bold] = next match, [bold]N[/bold] = previous[/]",
                id="search_hint",
                markup=True,
            )

    def on_mount(self) -> None:
        self._input = self.query_one("#search_input", Input)
        self._input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "search_input":
            return
        value = self._input.value.strip() if self._input else ""
        self.dismiss(value if value else None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SaveGraphScreen(ModalScreen[Path | None]):
    """Modal asking where to save the include graph. Enter saves, Escape cancels."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    SaveGraphScreen {
        align: center middle;
        padding: 2 4;
    }
    SaveGraphScreen #save_title {
        text-align: center;
        padding-bottom: 1;
    }
    SaveGraphScreen #save_input {
        width: 60;
        margin: 1 0;
    }
    SaveGraphScreen #save_hint {
        text-align: center;
        padding-top: 1;
    }
    """

    def __init__(self, default_path: str = DEFAULT_GRAPH_FILE, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._default_path = default_path
        self._input: Input | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(
                "[bold cyan]Save include graph[/]\n\n"
                "File to write (.dgml, .dot, .mermaid or .json; DGML otherwise).",
                id="save_title",
                markup=True,
            )
            yield Input(value=self._default_path, id="save_input")
            yield Static(
                "[dim]Enter[/] = Save  ·  [dim]Escape[/] = Cancel",
                id="save_hint",
                markup=True,
            )

    def on_mount(self) -> None:
        self._input = self.query_one("#save_input", Input)
        self._input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "save_input":
            return
        value = self._input.value.strip() if self._input else ""
        if not value:
            self.dismiss(None)
            return
        p = Path(value).expanduser()
        if p.is_dir():
            self.notify(f"Is a directory: {p}", severity="warning", timeout=3)
            return
        if not p.parent.exists():
            self.notify(f"Directory does not exist: {p.parent}", severity="warning", timeout=3)
            return
        self.dismiss(p)

    def action_cancel(self) -> None:
        self.dismiss(None)


class IncludeTreeApp(App[None]):
    """Terminal UI showing which file included which while compiling one translation unit."""

    TITLE = "inctree"
    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("s", "save_graph", "Save graph"),
        Binding("/", "search", "Search"),
        Binding("n", "next_match", "Next match", show=False),
        Binding("N", "prev_match", "Prev match", show=False),
        Binding("d", "toggle_details", "Details"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse"),
        Binding("q", "quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #file_label {
        height: auto;
        padding: 0 1;
    }
    #progress {
        height: 3;
        display: none;
    }
    #progress.loading {
        display: block;
    }
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 6;
    }
    """

    def __init__(
        self,
        loader: Callable[[], IncludeTree | None],
        title: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._loader = loader
        self._source_title = title
        self._tree: IncludeTree | None = None
        self._loading = False
        self._search_matches: list[TreeNode] = []
        self._search_index: int = 0
        self._details_visible: bool = True

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Static(self._file_label(), id="file_label", markup=True)
        with Container(id="progress"):
            yield LoadingIndicator()
        yield Tree("Includes", id="include_tree")
        yield Static(
            "[dim]↑/↓[/] move  ·  [dim]Enter[/]/[dim]Space[/] select  ·  [dim]r[/] = Refresh",
            id="details",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = "Include Tree Viewer"
        self.action_refresh()

    def _file_label(self, num_includes: int | None = None) -> str:
        name = escape(self._source_title or "(no file)")
        count = "" if num_includes is None else f"  ·  [{COLOR_STATS}]{num_includes}[/] includes"
        return f"[{COLOR_HEADER}]{name}[/]{count}"

    def _clear_tree(self, tree: Tree) -> None:
        while tree.root.children:
            tree.root.children[0].remove()

    def action_refresh(self) -> None:
        """Rebuild the include tree in a background thread; ignored while a run is in flight."""
        if self._loading:
            self.notify("A refresh is already running", severity="information", timeout=2)
            return
        self._loading = True
        self._tree = None
        tree = self.query_one("#include_tree", Tree)
        self._clear_tree(tree)
        self.query_one("#file_label", Static).update(self._file_label())
        self.query_one("#progress").add_class("loading")
        self._set_details("[dim]Collecting includes...[/]")
        self.run_worker(self._loader, thread=True, exclusive=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Handle loader completion."""
        if event.state == WorkerState.SUCCESS:
            self._finish_refresh(event.worker.result)
        elif event.state in (WorkerState.ERROR, WorkerState.CANCELLED):
            self._finish_refresh(None, error=str(event.worker.error or "cancelled"))

    def _finish_refresh(self, result: IncludeTree | None, error: str | None = None) -> None:
        self._loading = False
        self.query_one("#progress").remove_class("loading")
        tree = self.query_one("#include_tree", Tree)
        self._clear_tree(tree)
        if result is None:
            # Never keep a tree from an earlier run after a failed one
            self._tree = None
            reason = f"[red]Error: {escape(error)}[/]" if error else "[red]No include tree could be built.[/]"
            self._set_details(reason + "\n\n[dim]r[/] = Retry")
            tree.root.add_leaf("[dim]No includes[/]")
            return

        self._tree = result
        self.query_one("#file_label", Static).update(self._file_label(result.num_includes))
        tree.root.data = result.root
        _populate_textual_tree(tree.root, result.root)
        _expand_to_depth(tree.root, EXPAND_DEPTH_DEFAULT)
        if _count_nodes(result.root) - 1 > MAX_TREE_NODES:
            self.notify(
                f"Showing the first {MAX_TREE_NODES} of {result.num_includes} includes",
                severity="warning",
                timeout=3,
            )
        self._set_details(self._format_summary(result))
        tree.focus()

    def _format_summary(self, result: IncludeTree) -> str:
        direct, total, max_depth = _node_stats(result.root)
        lines = [
            f"[{COLOR_HEADER}]Translation unit[/]",
            f"  [{COLOR_FILE}]{escape(result.source or self._source_title or '?')}[/]",
            "",
            f"[{COLOR_HEADER}]Stats[/]",
            f"  Includes:          [{COLOR_STATS}]{result.num_includes}[/]",
            f"  Direct includes:   [{COLOR_STATS}]{direct}[/]",
            f"  Max nesting:       [{COLOR_STATS}]{max_depth}[/] [dim]levels[/]",
        ]
        return "\n".join(lines)

    def _format_node(self, node: Any) -> str:
        direct, total_desc, max_depth = _node_stats(node)
        lines = [
            f"[{COLOR_HEADER}]Include[/]",
            f"  [{COLOR_FILE}]{escape(node.display_name)}[/]",
            "",
            f"[{COLOR_HEADER}]Path[/]",
            f"  [{COLOR_PATH}]{escape(node.raw_path)}[/]",
            "",
            f"[{COLOR_HEADER}]Stats[/]",
            f"  Direct includes:   [{COLOR_STATS}]{direct}[/]",
            f"  Total below:       [{COLOR_STATS}]{total_desc}[/]",
            f"  Max depth from here:  [{COLOR_STATS}]{max_depth}[/] [dim]levels[/]",
        ]
        return "\n".join(lines)

    def _set_details(self, text: str) -> None:
        details = self.query_one("#details", Static)
        details.update(text)

    def on_tree_node_highlighted(self, event: Tree.NodeHighlighted) -> None:
        node = event.node.data
        if node is not None and getattr(node, "raw_path", ""):
            self._set_details(self._format_node(node))

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        node = event.node.data
        if node is None:
            return
        if getattr(node, "raw_path", ""):
            self._set_details(self._format_node(node))
        elif self._tree is not None:
            self._set_details(self._format_summary(self._tree))

    def action_save_graph(self) -> None:
        """Ask for a file name and write the include graph."""
        if self._tree is None:
            self.notify("There is no include tree to save!", severity="error", timeout=3)
            return
        self.push_screen(SaveGraphScreen(), self._on_save_graph_done)

    def _on_save_graph_done(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            document = export_graph(self._tree, path)
        except NoTreeToExportError as e:
            self.notify(str(e), severity="error", timeout=3)
            return
        except OSError as e:
            self.notify(f"Could not write {path}: {e}", severity="error", timeout=3)
            return
        suffix = path.suffix.lower().lstrip(".")
        fmt = suffix if suffix in {f.value for f in GraphFormat} else GraphFormat.DGML.value
        self.notify(
            f"Saved {len(document.nodes)} files ({fmt}) to {path}",
            severity="information",
            timeout=3,
        )

    def action_expand_all(self) -> None:
        tree = self.query_one("#include_tree", Tree)
        tree.root.expand_all()

    def action_collapse_all(self) -> None:
        tree = self.query_one("#include_tree", Tree)
        tree.root.collapse_all()
        tree.root.expand()

    def action_search(self) -> None:
        """Open search modal."""
        self.push_screen(SearchScreen(), self._on_search_done)

    def _on_search_done(self, query: str | None) -> None:
        if not query:
            return
        self._search_matches = []
        self._search_index = 0

        tree = self.query_one("#include_tree", Tree)
        for child in tree.root.children:
            self._collect_matches(child, query.lower())

        if not self._search_matches:
            self.notify(f"No matches for '{query}'", severity="warning", timeout=2)
            return

        self.notify(
            f"Found {len(self._search_matches)} match(es) for '{query}'",
            severity="information",
            timeout=2,
        )
        self._goto_match(0)

    def _collect_matches(self, node: TreeNode, query: str) -> None:
        """Recursively collect nodes whose display name or raw path matches."""
        data = node.data
        haystack = str(node.label).lower()
        if data is not None:
            haystack += " " + getattr(data, "raw_path", "").lower()
        if query in haystack:
            self._search_matches.append(node)
        for child in node.children:
            self._collect_matches(child, query)

    def _goto_match(self, index: int) -> None:
        """Navigate to and select a specific match."""
        if not self._search_matches:
            return
        self._search_index = index % len(self._search_matches)
        match_node = self._search_matches[self._search_index]

        self._expand_ancestors(match_node)

        tree = self.query_one("#include_tree", Tree)
        tree.select_node(match_node)
        tree.scroll_to_node(match_node)

        total = len(self._search_matches)
        current = self._search_index + 1
        self.notify(
            f"Match {current}/{total}: {match_node.label}",
            severity="information",
            timeout=2,
        )

    def _expand_ancestors(self, node: TreeNode) -> None:
        """Expand all ancestor nodes to make the target visible."""
        ancestors = []
        parent = node.parent
        while parent is not None:
            ancestors.append(parent)
            parent = parent.parent
        for ancestor in reversed(ancestors):
            ancestor.expand()

    def action_next_match(self) -> None:
        """Go to next search match."""
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index + 1)

    def action_prev_match(self) -> None:
        """Go to previous search match."""
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index - 1)

    def action_toggle_details(self) -> None:
        """Toggle visibility of the details panel."""
        self._details_visible = not self._details_visible
        details = self.query_one("#details", Static)
        details.styles.display = "block" if self._details_visible else "none"

    def action_quit(self) -> None:
        self.exit()
