"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_plz.errors import ResolutionError
from cargo_plz.models import Package, PackageGraph, RawInputs


class FakeRepo:
    """In-memory RepoIntrospection."""

    def __init__(
        self,
        root: Path | None,
        *,
        ignored: bool = False,
        committed: bool = False,
        remote: str | None = "https://github.com/owner/repo.git",
    ) -> None:
        self._root = root
        self.ignored = ignored
        self.committed = committed
        self.remote = remote
        self.queried: list[Path] = []

    def root(self, path: Path) -> Path:
        if self._root is None:
            raise ResolutionError(f"cannot find the git repository containing {path}")
        return self._root

    def is_ignored(self, repo_root: Path, path: Path) -> bool:
        self.queried.append(path)
        return self.ignored

    def is_committed(self, repo_root: Path, path: Path) -> bool:
        return self.committed

    def default_remote_url(self, repo_root: Path) -> str:
        if self.remote is None:
            raise ResolutionError(f"no `origin` remote configured in {repo_root}")
        return self.remote


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A cargo workspace with two member crates."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Cargo.toml").write_text('[workspace]\nmembers = ["crates/*"]\n')
    for name in ("aaa", "bbb"):
        crate = root / "crates" / name
        crate.mkdir(parents=True)
        (crate / "Cargo.toml").write_text(
            f'[package]\nname = "{name}"\nversion = "0.1.0"\n'
        )
    return root


@pytest.fixture
def graph(workspace: Path) -> PackageGraph:
    return PackageGraph(
        workspace_root=workspace,
        target_directory=workspace / "target",
        packages=[
            Package(
                name="aaa",
                version="0.1.0",
                manifest_path=workspace / "crates" / "aaa" / "Cargo.toml",
            ),
            Package(
                name="bbb",
                version="1.2.0-rc.1",
                manifest_path=workspace / "crates" / "bbb" / "Cargo.toml",
            ),
        ],
    )


@pytest.fixture
def repo(workspace: Path) -> FakeRepo:
    return FakeRepo(workspace)


@pytest.fixture
def make_raw(workspace: Path, tmp_path: Path):
    """Build RawInputs rooted in the workspace, with no user cliff.toml."""

    def _make(**overrides) -> RawInputs:
        values = {"cwd": workspace, "config_dir": tmp_path / "user-config"}
        values.update(overrides)
        return RawInputs(**values)

    return _make
