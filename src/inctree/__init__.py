"""inctree: reconstruct and visualize C/C++ include trees from compiler traces (library, TUI, CLI)."""

from importlib.metadata import version, PackageNotFoundError

from inctree.api import (
    export_graph,
    parse_trace,
    parse_trace_file,
    trace_source,
)
from inctree.core.graph import GraphDocument, GraphFormat
from inctree.core.pathfmt import PathMode, format_path
from inctree.core.tree import IncludeNode, IncludeTree

__all__ = [
    "export_graph",
    "parse_trace",
    "parse_trace_file",
    "trace_source",
    "GraphDocument",
    "GraphFormat",
    "PathMode",
    "format_path",
    "IncludeNode",
    "IncludeTree",
    "__version__",
]

try:
    __version__ = version("inctree")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
