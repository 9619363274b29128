"""Build and represent include trees reconstructed from compiler traces."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from inctree.core.errors import MalformedTraceError
from inctree.core.parser import INCLUDE_NOTE_MARKER, TraceDialect, iter_trace_entries
from inctree.core.pathfmt import PathMode, format_path

logger = logging.getLogger(__name__)


@dataclass
class IncludeNode:
    """One include event: the file as the compiler reported it and the files it pulled in."""

    raw_path: str
    display_name: str
    children: list[IncludeNode] = field(default_factory=list)

    @classmethod
    def root(cls) -> IncludeNode:
        """The synthetic node standing for the translation unit itself."""
        return cls(raw_path="", display_name="")

    def to_dict(self) -> dict:
        """Serialize node to a JSON-friendly dict."""
        return {
            "raw_path": self.raw_path,
            "display_name": self.display_name,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class IncludeTree:
    """Result of one successful parse."""

    root: IncludeNode
    num_includes: int
    source: str | None = None

    def walk(self) -> Iterator[tuple[int, IncludeNode]]:
        """Yield (depth, node) depth-first in trace order; depth 0 = included by the main file."""
        stack = [(0, child) for child in reversed(self.root.children)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.children))

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "num_includes": self.num_includes,
            "includes": [c.to_dict() for c in self.root.children],
        }


def parse_include_trace(
    text: str,
    base_dirs: Iterable[str] = (),
    *,
    dialect: TraceDialect = TraceDialect.MSVC,
    marker: str = INCLUDE_NOTE_MARKER,
    mode: PathMode = PathMode.SHORTEST_AVOID_UP_STEPS,
    source: str | None = None,
) -> IncludeTree:
    """
    Reconstruct the include hierarchy from raw compiler output.

    The current ancestor chain is kept on an explicit stack seeded with the
    synthetic root. A notice one level deeper than the stack descends into
    the previous include; shallower notices pop back up to the enclosing file.
    Duplicate paths are kept exactly as traced.

    Args:
        text: Complete compiler output; non-matching lines are ignored.
        base_dirs: Candidate base directories for display names, in priority order.
        dialect: Trace format (MSVC /showIncludes or GCC/Clang -H).
        marker: Include notice marker for the MSVC dialect (localized compilers differ).
        mode: Display mode for node names.
        source: Translation unit the trace belongs to (informational).

    Returns:
        IncludeTree with the synthetic root and the number of includes found.

    Raises:
        MalformedTraceError: A notice skips a nesting level. No partial tree is returned.
    """
    base_dirs = list(base_dirs)
    root = IncludeNode.root()
    stack = [root]
    num_includes = 0

    for entry in iter_trace_entries(text, dialect=dialect, marker=marker):
        if entry.depth >= len(stack):
            parent = stack[-1]
            if entry.depth > len(stack):
                raise MalformedTraceError(
                    f"include depth jumps from {len(stack) - 1} to {entry.depth}",
                    line_number=entry.line_number,
                    line=entry.line,
                )
            if not parent.children:
                raise MalformedTraceError(
                    f"include at depth {entry.depth} has no enclosing file",
                    line_number=entry.line_number,
                    line=entry.line,
                )
            stack.append(parent.children[-1])
        while entry.depth < len(stack) - 1:
            stack.pop()

        display_name = format_path(entry.path, mode, base_dirs)
        if display_name is None:
            display_name = entry.path
        stack[-1].children.append(IncludeNode(raw_path=entry.path, display_name=display_name))
        num_includes += 1

    logger.debug("Parsed %d include(s)", num_includes)
    return IncludeTree(root=root, num_includes=num_includes, source=source)
