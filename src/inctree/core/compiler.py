"""Run a compiler with include tracing enabled and capture its output."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Iterable
from pathlib import PureWindowsPath

from inctree.core.errors import TraceCaptureError
from inctree.core.parser import TraceDialect

logger = logging.getLogger(__name__)

DEFAULT_COMPILER = "cl"
DEFAULT_TIMEOUT = 300  # seconds

_MSVC_COMPILERS = ("cl", "clang-cl")


def compiler_dialect(compiler: str) -> TraceDialect:
    """Trace dialect produced by a compiler executable (cl/clang-cl vs. gcc-style)."""
    # PureWindowsPath splits on both separators
    name = PureWindowsPath(compiler).name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    return TraceDialect.MSVC if name in _MSVC_COMPILERS else TraceDialect.GCC


def compiler_command(
    compiler: str,
    source: str,
    *,
    include_dirs: Iterable[str] = (),
    extra_args: Iterable[str] = (),
) -> list[str]:
    """
    Build a syntax-only compiler invocation that reports every included file.

    cl/clang-cl get /showIncludes /Zs; anything else is assumed to understand
    GCC options and gets -H -fsyntax-only.
    """
    if compiler_dialect(compiler) is TraceDialect.MSVC:
        command = [compiler, "/nologo", "/showIncludes", "/Zs"]
        command.extend(f"/I{d}" for d in include_dirs)
    else:
        command = [compiler, "-H", "-fsyntax-only"]
        command.extend(f"-I{d}" for d in include_dirs)
    command.extend(extra_args)
    command.append(source)
    return command


def run_compiler(
    command: list[str],
    *,
    cwd: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Run the compiler and return everything it printed (stdout, then stderr).

    A non-zero exit status is only logged: a file with compile errors still
    yields a usable include trace up to the failure.
    Bytes that are not valid in the locale encoding (e.g. Latin-1 file names)
    are replaced rather than aborting the capture.

    Raises:
        TraceCaptureError: The compiler could not be started, timed out or printed nothing.
    """
    logger.info("Running %s", shlex.join(command))
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            errors="replace",
            cwd=cwd,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise TraceCaptureError(f"Compiler not found: {command[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise TraceCaptureError(f"Compiler timed out after {timeout}s") from e
    except OSError as e:
        raise TraceCaptureError(f"Could not run compiler: {e}") from e

    if result.returncode != 0:
        logger.warning("Compiler exited with status %d", result.returncode)
    output = (result.stdout or "") + (result.stderr or "")
    if not output.strip():
        raise TraceCaptureError("Compiler produced no output")
    return output
