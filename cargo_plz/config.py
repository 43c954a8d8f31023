"""Project configuration (release-plz.toml).

The configuration file is optional. When present it supplies workspace-wide
defaults that CLI flags can only strengthen or override.
"""

from __future__ import annotations

from pathlib import Path

import pydantic

from .errors import ConfigurationError
from .models import Config, PackageUpdateConfig, UpdateRequest
from .toml import load_table

CONFIG_FILES = ("release-plz.toml", ".release-plz.toml")


def find_config(cwd: Path) -> Path | None:
    """Return the first default configuration file found in cwd."""
    for name in CONFIG_FILES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None, cwd: Path) -> Config:
    """Load release-plz.toml.

    Args:
        config_path: File given with --config. It must exist.
        cwd: Directory searched for release-plz.toml or .release-plz.toml
             when config_path is not given.

    Returns:
        The parsed configuration, or the default Config if there is no file.

    Raises:
        ConfigurationError: If --config points nowhere or the file is invalid.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigurationError(f"cannot find config file {config_path}")
        path = config_path
    else:
        path = find_config(cwd)
        if path is None:
            return Config()

    data = load_table(path)
    try:
        return Config.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"invalid config file {path}:\n{exc}") from exc


def fill_update_config(
    config: Config, no_changelog: bool, request: UpdateRequest
) -> None:
    """Attach the package update settings of config to request.

    Workspace defaults apply to every package; [[package]] entries override
    them field by field. no_changelog disables changelog updates for all
    packages regardless of what the file says.
    """
    defaults = config.workspace.package_defaults()
    if no_changelog:
        defaults.changelog_update = False
    request.default_package_config = defaults

    packages_config: dict[str, PackageUpdateConfig] = {}
    for name, pkg_config in config.packages().items():
        merged = pkg_config.merge(config.workspace)
        if no_changelog:
            merged.changelog_update = False
        packages_config[name] = merged
    request.packages_config = packages_config
