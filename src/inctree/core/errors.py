"""Exceptions raised by the include-trace core."""

from __future__ import annotations


class InctreeError(Exception):
    """Base class for all inctree errors."""


class TraceCaptureError(InctreeError):
    """The compiler could not be run or produced no trace output."""


class MalformedTraceError(InctreeError):
    """Include depths in the trace cannot be turned into a consistent tree."""

    def __init__(self, message: str, *, line_number: int, line: str) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number
        self.line = line


class NoTreeToExportError(InctreeError):
    """A graph export was requested before any include tree was built."""

    def __init__(self) -> None:
        super().__init__("There is no include tree to save")
