"""Capabilities shared by commands that act on a cargo project.

A command that can name a manifest implements ManifestCommand; one that
can name a repository URL implements RepoCommand. The helpers below
resolve those values with the usual fallbacks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .models import MANIFEST_FILE, Config
from .repo import RepoIntrospection, RepoUrl


class ManifestCommand(Protocol):
    cwd: Path

    def manifest_source(self) -> Path | None: ...


class RepoCommand(ManifestCommand, Protocol):
    def repo_url_source(self) -> str | None: ...


def manifest_path(command: ManifestCommand) -> Path:
    """Path of the project's Cargo.toml.

    An explicit path is returned as given; it is not checked here since the
    code that opens it reports a better error.
    """
    explicit = command.manifest_source()
    if explicit is not None:
        return explicit
    return command.cwd / MANIFEST_FILE


def get_repo_url(
    command: RepoCommand, config: Config, repo: RepoIntrospection
) -> RepoUrl:
    """Repository URL: CLI value, else [workspace] repo_url, else `origin`.

    Raises:
        ReleaseError: If no URL can be found or the URL can't be parsed.
    """
    url = command.repo_url_source() or config.workspace.repo_url
    if url is None:
        repo_root = repo.root(manifest_path(command))
        url = repo.default_remote_url(repo_root)
    return RepoUrl.parse(url)
