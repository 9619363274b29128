"""Core library: trace parsing, path formatting, include trees and graph export."""

from inctree.core.compiler import compiler_command, compiler_dialect, run_compiler
from inctree.core.errors import (
    InctreeError,
    MalformedTraceError,
    NoTreeToExportError,
    TraceCaptureError,
)
from inctree.core.finder import candidate_base_dirs
from inctree.core.graph import (
    GraphDocument,
    GraphFormat,
    build_graph_document,
    render_graph,
    write_graph,
)
from inctree.core.parser import INCLUDE_NOTE_MARKER, TraceDialect, iter_trace_entries
from inctree.core.pathfmt import PathMode, format_path
from inctree.core.tree import IncludeNode, IncludeTree, parse_include_trace

__all__ = [
    "compiler_command",
    "compiler_dialect",
    "run_compiler",
    "InctreeError",
    "MalformedTraceError",
    "NoTreeToExportError",
    "TraceCaptureError",
    "candidate_base_dirs",
    "GraphDocument",
    "GraphFormat",
    "build_graph_document",
    "render_graph",
    "write_graph",
    "INCLUDE_NOTE_MARKER",
    "TraceDialect",
    "iter_trace_entries",
    "PathMode",
    "format_path",
    "IncludeNode",
    "IncludeTree",
    "parse_include_trace",
]
