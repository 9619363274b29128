"""Public API: use inctree from Python or from other tools."""

from __future__ import annotations

import logging
from pathlib import Path

from inctree.core.compiler import (
    DEFAULT_COMPILER,
    DEFAULT_TIMEOUT,
    compiler_command,
    compiler_dialect,
    run_compiler,
)
from inctree.core.errors import MalformedTraceError, NoTreeToExportError, TraceCaptureError
from inctree.core.finder import candidate_base_dirs
from inctree.core.graph import GraphDocument, GraphFormat, build_graph_document, write_graph
from inctree.core.parser import INCLUDE_NOTE_MARKER, TraceDialect
from inctree.core.pathfmt import PathMode
from inctree.core.tree import IncludeTree, parse_include_trace

logger = logging.getLogger(__name__)


def parse_trace(
    text: str | None,
    *,
    source: str | None = None,
    include_dirs: list[str] | None = None,
    dialect: TraceDialect = TraceDialect.MSVC,
    marker: str = INCLUDE_NOTE_MARKER,
    mode: PathMode = PathMode.SHORTEST_AVOID_UP_STEPS,
) -> IncludeTree | None:
    """
    Build an include tree from captured compiler output.

    Display names are made relative to the source's directory, then
    include_dirs, then the INCLUDE environment variable.
    Returns None if there is no output or the trace is malformed; a failed
    parse never yields a partial tree.
    """
    if not text:
        logger.warning("No compiler output to parse")
        return None
    try:
        return parse_include_trace(
            text,
            candidate_base_dirs(source, include_dirs),
            dialect=dialect,
            marker=marker,
            mode=mode,
            source=source,
        )
    except MalformedTraceError as e:
        logger.error("Malformed include trace, discarding result: %s", e)
        return None


def parse_trace_file(
    path: Path,
    *,
    source: str | None = None,
    include_dirs: list[str] | None = None,
    dialect: TraceDialect = TraceDialect.MSVC,
    marker: str = INCLUDE_NOTE_MARKER,
    mode: PathMode = PathMode.SHORTEST_AVOID_UP_STEPS,
) -> IncludeTree | None:
    """Build an include tree from a saved build log. Returns None if it cannot be read or parsed."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error("Cannot read trace %s: %s", path, e)
        return None
    return parse_trace(
        text,
        source=source,
        include_dirs=include_dirs,
        dialect=dialect,
        marker=marker,
        mode=mode,
    )


def trace_source(
    source: str,
    *,
    compiler: str = DEFAULT_COMPILER,
    include_dirs: list[str] | None = None,
    extra_args: list[str] | None = None,
    mode: PathMode = PathMode.SHORTEST_AVOID_UP_STEPS,
    timeout: float = DEFAULT_TIMEOUT,
) -> IncludeTree | None:
    """
    Compile a source file with include tracing and build its include tree.

    Args:
        source: Translation unit to compile (syntax check only, nothing is written).
        compiler: Compiler executable; cl/clang-cl use /showIncludes, others -H.
        include_dirs: Include directories passed to the compiler and used for display names.
        extra_args: Additional compiler arguments (defines, language standard, ...).
        mode: Display mode for node names.
        timeout: Seconds before the compiler run is abandoned.

    Returns:
        IncludeTree, or None if the compiler could not be run or the trace is malformed.
    """
    command = compiler_command(
        compiler,
        source,
        include_dirs=include_dirs or [],
        extra_args=extra_args or [],
    )
    try:
        output = run_compiler(command, timeout=timeout)
    except TraceCaptureError as e:
        logger.error("%s", e)
        return None
    return parse_trace(
        output,
        source=source,
        include_dirs=include_dirs,
        dialect=compiler_dialect(compiler),
        mode=mode,
    )


def export_graph(
    tree: IncludeTree | None,
    path: Path | None = None,
    *,
    graph_format: GraphFormat | None = None,
    title: str | None = None,
) -> GraphDocument:
    """
    Project an include tree onto a graph and optionally write it to a file.

    Raises:
        NoTreeToExportError: tree is None (no successful parse); nothing is written.
    """
    if tree is None:
        raise NoTreeToExportError()
    document = build_graph_document(tree.root)
    if path is not None:
        write_graph(document, Path(path), graph_format, title=title)
    return document
