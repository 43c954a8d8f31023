"""TOML reading utilities.

Uses tomlkit to read release-plz.toml and git-cliff configuration files.
Documents are unwrapped into plain dicts so they can be validated by the
pydantic models.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from .errors import ConfigurationError


def load_document(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Raises:
        ConfigurationError: If the file cannot be read or is not valid TOML.
    """
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"cannot read {path}: {exc}") from exc
    try:
        return tomlkit.parse(text)
    except ParseError as exc:
        raise ConfigurationError(f"invalid TOML in {path}: {exc}") from exc


def load_table(path: Path) -> dict[str, Any]:
    """Load a TOML file as plain Python data (no tomlkit wrapper types)."""
    return load_document(path).unwrap()
