"""Command-line interface for inctree: show include trees and export include graphs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path, PureWindowsPath

from inctree.api import export_graph, parse_trace, parse_trace_file, trace_source
from inctree.core.compiler import DEFAULT_COMPILER, DEFAULT_TIMEOUT
from inctree.core.graph import GraphFormat, render_graph
from inctree.core.parser import INCLUDE_NOTE_MARKER, TraceDialect
from inctree.core.pathfmt import PathMode
from inctree.core.tree import IncludeNode, IncludeTree

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _print_tree_text(node: IncludeNode, prefix: str = "", show_raw: bool = False) -> None:
    """Print the includes below a node as an indented tree."""
    children = node.children
    for i, child in enumerate(children):
        is_last = i == len(children) - 1
        marker = "└── " if is_last else "├── "
        raw = f" [{child.raw_path}]" if show_raw and child.raw_path != child.display_name else ""
        print(f"{prefix}{marker}{child.display_name}{raw}")
        _print_tree_text(child, prefix + ("    " if is_last else "│   "), show_raw)


def _load_tree(args: argparse.Namespace) -> IncludeTree | None:
    """Build the include tree from a trace file, stdin, or a compiler run."""
    include_dirs = args.include or []
    mode = PathMode(args.mode)

    if args.compile:
        if not Path(args.compile).is_file():
            print(f"Can't trace includes, not a compilable file: {args.compile}", file=sys.stderr)
            return None
        return trace_source(
            args.compile,
            compiler=args.compiler,
            include_dirs=include_dirs,
            extra_args=args.compiler_arg or [],
            mode=mode,
            timeout=args.timeout,
        )

    if args.trace is None:
        print("Specify a trace file (or - for stdin) or --compile SOURCE.", file=sys.stderr)
        return None

    dialect = TraceDialect(args.dialect)
    if args.trace == "-":
        return parse_trace(
            sys.stdin.read(),
            source=args.source,
            include_dirs=include_dirs,
            dialect=dialect,
            marker=args.marker,
            mode=mode,
        )
    return parse_trace_file(
        Path(args.trace),
        source=args.source,
        include_dirs=include_dirs,
        dialect=dialect,
        marker=args.marker,
        mode=mode,
    )


def _input_name(args: argparse.Namespace) -> str | None:
    """Short name of what was traced, for titles. Accepts either separator."""
    if getattr(args, "compile", None):
        return PureWindowsPath(args.compile).name
    if getattr(args, "source", None):
        return PureWindowsPath(args.source).name
    if getattr(args, "trace", None) and args.trace != "-":
        return PureWindowsPath(args.trace).name
    return None


def cmd_tree(args: argparse.Namespace) -> int:
    """Show the include tree of a translation unit."""
    _configure_logging(args.verbose)
    tree = _load_tree(args)
    if tree is None:
        print("No include tree could be built.", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(tree.to_dict(), indent=2))
    else:
        name = _input_name(args)
        if name:
            print(name)
        _print_tree_text(tree.root, show_raw=args.raw)
        print(f"\n{tree.num_includes} include(s)")
    return 0


def cmd_graph(args: argparse.Namespace) -> int:
    """Export the include tree as a directed graph."""
    _configure_logging(args.verbose)
    tree = _load_tree(args)
    if tree is None:
        print("There is no include tree to save!", file=sys.stderr)
        return 1

    graph_format = GraphFormat(args.format)
    name = _input_name(args)
    title = None if args.no_title or not name else f"{name} includes"

    if args.output:
        export_graph(tree, Path(args.output), graph_format=graph_format, title=title)
        print(f"Graph written to: {args.output}", file=sys.stderr)
    else:
        document = export_graph(tree)
        print(render_graph(document, graph_format, title=title))
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    from inctree.tui.app import IncludeTreeApp

    def loader() -> IncludeTree | None:
        return _load_tree(args)

    app = IncludeTreeApp(loader=loader, title=_input_name(args))
    app.run()
    return 0


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by every command that builds an include tree."""
    parser.add_argument(
        "trace",
        nargs="?",
        help="Build log containing the include trace (- for stdin)",
    )
    parser.add_argument(
        "-c",
        "--compile",
        metavar="SOURCE",
        help="Compile SOURCE with include tracing instead of reading a trace",
    )
    parser.add_argument(
        "--source",
        metavar="FILE",
        help="Translation unit the trace belongs to (its directory shortens names)",
    )
    parser.add_argument(
        "-I",
        "--include",
        action="append",
        metavar="DIR",
        help="Include directory, used to shorten names and passed to the compiler (can be repeated)",
    )
    parser.add_argument(
        "--compiler",
        default=DEFAULT_COMPILER,
        help=f"Compiler used with --compile (default: {DEFAULT_COMPILER})",
    )
    parser.add_argument(
        "-X",
        "--compiler-arg",
        action="append",
        metavar="ARG",
        help="Extra argument for the compiler (can be repeated)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for the compiler (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--dialect",
        choices=[d.value for d in TraceDialect],
        default=TraceDialect.MSVC.value,
        help="Trace format: msvc (/showIncludes) or gcc (-H) (default: msvc)",
    )
    parser.add_argument(
        "--marker",
        default=INCLUDE_NOTE_MARKER,
        help="Include notice text for localized MSVC output",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=[m.value for m in PathMode],
        default=PathMode.SHORTEST_AVOID_UP_STEPS.value,
        help="How include paths are displayed (default: shortest-avoid-up-steps)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the inctree CLI."""
    parser = argparse.ArgumentParser(
        prog="inctree",
        description="Explore C/C++ include hierarchies from compiler include traces.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # inctree tree
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show the include tree of a translation unit",
        description="Rebuild and display the nested include tree from a compiler trace.",
    )
    _add_input_arguments(tree_parser)
    tree_parser.add_argument(
        "--raw",
        action="store_true",
        help="Also show the path exactly as the compiler reported it",
    )
    tree_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    tree_parser.set_defaults(func=cmd_tree)

    # inctree graph
    graph_parser = subparsers.add_parser(
        "graph",
        help="Export the include graph (DGML/DOT/Mermaid/JSON)",
        description="Export the include tree as a directed graph, one node per file.",
    )
    _add_input_arguments(graph_parser)
    graph_parser.add_argument(
        "-f",
        "--format",
        choices=[f.value for f in GraphFormat],
        default=GraphFormat.DGML.value,
        help="Output format (default: dgml)",
    )
    graph_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    graph_parser.add_argument(
        "--no-title",
        action="store_true",
        help="Don't include a title in DOT/Mermaid output",
    )
    graph_parser.set_defaults(func=cmd_graph)

    # inctree tui (default if no command)
    tui_parser = subparsers.add_parser(
        "tui",
        help="Launch the interactive terminal UI",
        description="Browse the include tree interactively; refresh re-runs the trace.",
    )
    _add_input_arguments(tui_parser)
    tui_parser.set_defaults(func=cmd_tui)

    args = parser.parse_args(argv)

    # Default to TUI if no command specified
    if args.command is None:
        return cmd_tui(tui_parser.parse_args([]))

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
