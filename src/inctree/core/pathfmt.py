"""Format compiler include paths for display, relative to candidate base directories."""

from __future__ import annotations

import enum
import logging
import ntpath
import posixpath
import re
from collections.abc import Iterable
from pathlib import PurePath, PurePosixPath, PureWindowsPath

logger = logging.getLogger(__name__)

_DRIVE_RE = re.compile(r"^[A-Za-z]:")
_UP_STEP = ".."


class PathMode(enum.Enum):
    """How an include path is shown to the user."""

    UNCHANGED = "unchanged"
    SHORTEST = "shortest"
    SHORTEST_AVOID_UP_STEPS = "shortest-avoid-up-steps"
    ABSOLUTE = "absolute"


def is_windows_path(path: str) -> bool:
    """Heuristic: backslashes or a drive letter mean Windows path rules."""
    return "\\" in path or bool(_DRIVE_RE.match(path))


def normalize_path(path: str, *, windows: bool | None = None) -> PurePath:
    """
    Lexically normalize a path: unify separators and fold `.`/`..` segments.

    Never touches the filesystem, so traces captured on another machine
    (or another OS) normalize the same way.
    """
    if windows is None:
        windows = is_windows_path(path)
    if windows:
        return PureWindowsPath(ntpath.normpath(path))
    return PurePosixPath(posixpath.normpath(path))


def _relative_parts(path: PurePath, base: PurePath, *, windows: bool) -> list[str] | None:
    """Segments leading from base to path, or None if they share no anchor."""

    def key(segment: str) -> str:
        return segment.casefold() if windows else segment

    if key(path.anchor) != key(base.anchor):
        return None
    path_parts = path.parts[1:] if path.anchor else path.parts
    base_parts = base.parts[1:] if base.anchor else base.parts

    common = 0
    for ours, theirs in zip(path_parts, base_parts):
        if key(ours) != key(theirs):
            break
        common += 1
    remaining_base = base_parts[common:]
    # Stepping up out of an unresolved ".." in the base is meaningless
    if _UP_STEP in remaining_base:
        return None
    return [_UP_STEP] * len(remaining_base) + list(path_parts[common:])


def format_path(
    path: str,
    mode: PathMode = PathMode.SHORTEST_AVOID_UP_STEPS,
    base_dirs: Iterable[str] = (),
) -> str | None:
    """
    Produce the display form of an include path.

    For SHORTEST_AVOID_UP_STEPS, every base directory under which the path
    resolves without any `..` step is a candidate and the shortest result wins;
    ties go to the earliest base directory. SHORTEST allows `..` steps.
    The result uses the path's own separator convention.

    Returns None when no base directory yields a usable relative path, so the
    caller can fall back to the raw path.
    """
    if not path:
        return None
    if mode is PathMode.UNCHANGED:
        return path

    windows = is_windows_path(path)
    normalized = normalize_path(path, windows=windows)
    if mode is PathMode.ABSOLUTE:
        return str(normalized)

    separator = "\\" if windows else "/"
    best: str | None = None
    for base in base_dirs:
        if not base:
            continue
        parts = _relative_parts(normalized, normalize_path(base, windows=windows), windows=windows)
        if not parts:
            continue
        if mode is PathMode.SHORTEST_AVOID_UP_STEPS and _UP_STEP in parts:
            continue
        candidate = separator.join(parts)
        if best is None or len(candidate) < len(best):
            best = candidate
    if best is None:
        logger.debug("No base directory contains %s", path)
    return best
