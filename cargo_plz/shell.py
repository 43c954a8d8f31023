"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git and cargo,
plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "rev-parse", "--show-toplevel").
        cwd: Directory to run git in. Defaults to the process working directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., remote lookup).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def git_succeeds(*args: str, cwd: Path | None = None) -> bool:
    """Run a git predicate command (check-ignore, ls-files, ...).

    Returns:
        True if git exited with status 0, False on status 1.

    Raises:
        subprocess.CalledProcessError: On any other status (e.g. 128 for a
            path outside the repository).
    """
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    if result.returncode > 1:
        raise subprocess.CalledProcessError(
            result.returncode, ["git", *args], result.stdout, result.stderr
        )
    return result.returncode == 0


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
    """Run an arbitrary command and capture its text output.

    Args:
        *args: Command and arguments (e.g., "cargo", "metadata").
        check: If True (default), raise on non-zero exit.
    """
    return subprocess.run(args, capture_output=True, text=True, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr and keep going.

    Use for degraded-but-valid situations, never for user misconfiguration.
    """
    print(f"WARNING: {msg}", file=sys.stderr)
