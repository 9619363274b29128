"""Discover the candidate base directories used to shorten include paths."""

from __future__ import annotations

import ntpath
import os
import posixpath
from collections.abc import Iterable

from inctree.core.pathfmt import is_windows_path, normalize_path

# MSVC reads extra include directories from this variable.
INCLUDE_ENV_VAR = "INCLUDE"


def _env_paths(env_var: str) -> list[str]:
    """Split an environment variable by os.pathsep, dropping empty entries."""
    value = os.environ.get(env_var, "")
    if not value:
        return []
    return [p.strip() for p in value.split(os.pathsep) if p.strip()]


def source_directory(source: str) -> str:
    """Directory containing the translation unit, as spelled on the command line."""
    dirname = ntpath.dirname if is_windows_path(source) else posixpath.dirname
    return dirname(source) or os.curdir


def _absolute_form(directory: str) -> str | None:
    """Directory resolved against the cwd, or None if already absolute or foreign."""
    if normalize_path(directory).anchor:
        return None
    # a drive-less Windows spelling has no meaning against a POSIX cwd
    if is_windows_path(directory) and os.name != "nt":
        return None
    return os.path.abspath(directory)


def candidate_base_dirs(
    source: str | None = None,
    include_dirs: Iterable[str] | None = None,
    *,
    env_var: str | None = INCLUDE_ENV_VAR,
) -> list[str]:
    """
    Collect base directories for display names, highest priority first.

    Order: the source file's own directory, the include directories as given,
    then entries of env_var (pass None to ignore the environment).
    Each relative directory is kept as spelled (GCC prints paths relative to
    the -I spelling) and is followed by its absolute form (MSVC prints
    absolute paths).
    Duplicates are dropped, keeping the first occurrence.
    """
    dirs: list[str] = []
    if source:
        dirs.append(source_directory(source))
    if include_dirs:
        dirs.extend(include_dirs)
    if env_var:
        dirs.extend(_env_paths(env_var))

    seen: set[str] = set()
    out: list[str] = []
    for d in dirs:
        for candidate in (d, _absolute_form(d)):
            if candidate is None or candidate in seen:
                continue
            seen.add(candidate)
            out.append(candidate)
    return out
