"""Recognize include notices in raw compiler output."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass

# MSVC /showIncludes notice. Nesting is shown as extra spaces after the marker.
INCLUDE_NOTE_MARKER = "Note: including file: "

# GCC/Clang -H: one dot per nesting level, then a space and the path.
_DOT_LINE_RE = re.compile(r"^(\.+) (.*)$")


class TraceDialect(enum.Enum):
    """Output format of the compiler that produced the trace."""

    MSVC = "msvc"
    GCC = "gcc"


@dataclass(frozen=True)
class TraceEntry:
    """One include notice: the include path and its nesting depth (0 = main file)."""

    depth: int
    path: str
    line_number: int
    line: str


def _match_note_line(line: str, marker: str) -> tuple[int, str] | None:
    start = line.find(marker)
    if start < 0:
        return None
    start += len(marker)
    include_start = start
    while include_start < len(line) and line[include_start] == " ":
        include_start += 1
    return include_start - start, line[include_start:]


def _match_dot_line(line: str) -> tuple[int, str] | None:
    match = _DOT_LINE_RE.match(line)
    if match is None:
        return None
    return len(match.group(1)) - 1, match.group(2)


def parse_trace_line(
    line: str,
    *,
    dialect: TraceDialect = TraceDialect.MSVC,
    marker: str = INCLUDE_NOTE_MARKER,
) -> tuple[int, str] | None:
    """
    Extract (depth, path) from a single line of compiler output.

    Returns None for lines that are not include notices (ordinary build
    output interleaved with the trace) or that carry no path.
    """
    line = line.rstrip("\r")
    if dialect is TraceDialect.GCC:
        parsed = _match_dot_line(line)
    else:
        parsed = _match_note_line(line, marker)
    if parsed is None or not parsed[1]:
        return None
    return parsed


def iter_trace_entries(
    text: str,
    *,
    dialect: TraceDialect = TraceDialect.MSVC,
    marker: str = INCLUDE_NOTE_MARKER,
) -> Iterator[TraceEntry]:
    """Yield every include notice in the output, in order of appearance."""
    for line_number, line in enumerate(text.split("\n"), start=1):
        parsed = parse_trace_line(line, dialect=dialect, marker=marker)
        if parsed is None:
            continue
        depth, path = parsed
        yield TraceEntry(depth=depth, path=path, line_number=line_number, line=line.rstrip("\r"))
