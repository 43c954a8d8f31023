"""Cargo workspace metadata.

Runs `cargo metadata` for a manifest and parses the result into a
PackageGraph. Only workspace members are loaded (--no-deps).
"""

from __future__ import annotations

from pathlib import Path

import pydantic

from .errors import ResolutionError
from .models import PackageGraph
from .shell import run


def parse_metadata(raw: str) -> PackageGraph:
    """Parse the JSON printed by `cargo metadata --format-version 1`.

    Raises:
        ResolutionError: If the output is not valid metadata.
    """
    try:
        return PackageGraph.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        raise ResolutionError(f"unexpected `cargo metadata` output:\n{exc}") from exc


def load_metadata(manifest_path: Path) -> PackageGraph:
    """Load the package graph of the workspace containing manifest_path.

    Raises:
        ResolutionError: If cargo is missing or fails (e.g., no Cargo.toml).
    """
    cmd = (
        "cargo",
        "metadata",
        "--format-version",
        "1",
        "--no-deps",
        "--manifest-path",
        str(manifest_path),
    )
    try:
        result = run(*cmd, check=False)
    except OSError as exc:
        raise ResolutionError(f"failed to execute cargo: {exc}") from exc
    if result.returncode != 0:
        raise ResolutionError(
            f"cannot read cargo metadata for {manifest_path}: {result.stderr.strip()}"
        )
    return parse_metadata(result.stdout)
