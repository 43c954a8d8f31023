"""Tests for cargo_plz.repo."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from conftest import FakeRepo

from cargo_plz.errors import ResolutionError, ValidationError
from cargo_plz.repo import GitCli, RepoUrl, check_lock_file_hazard


class TestRepoUrlParse:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/owner/repo",
            "https://github.com/owner/repo.git",
            "https://github.com/owner/repo/",
            "git@github.com:owner/repo.git",
            "ssh://git@github.com/owner/repo.git",
        ],
    )
    def test_github_forms(self, url: str) -> None:
        repo_url = RepoUrl.parse(url)
        assert repo_url.host == "github.com"
        assert repo_url.owner == "owner"
        assert repo_url.name == "repo"
        assert repo_url.is_on_github()
        assert repo_url.full_url() == "https://github.com/owner/repo"

    def test_keeps_http_scheme_and_port(self) -> None:
        repo_url = RepoUrl.parse("http://gitea.local:3000/me/project")
        assert repo_url.base_url() == "http://gitea.local:3000"
        assert not repo_url.is_on_github()

    def test_nested_gitlab_namespace(self) -> None:
        repo_url = RepoUrl.parse("https://gitlab.com/group/subgroup/project.git")
        assert repo_url.owner == "group/subgroup"
        assert repo_url.name == "project"
        assert repo_url.is_on_gitlab()

    @pytest.mark.parametrize(
        "url", ["", "https://github.com", "https://github.com/owner", "not a url"]
    )
    def test_rejects_incomplete_urls(self, url: str) -> None:
        with pytest.raises(ResolutionError):
            RepoUrl.parse(url)


class TestPrLink:
    def test_github(self) -> None:
        link = RepoUrl.parse("https://github.com/owner/repo").git_pr_link()
        assert link == "https://github.com/owner/repo/pull"

    def test_gitlab(self) -> None:
        link = RepoUrl.parse("https://gitlab.com/group/repo").git_pr_link()
        assert link == "https://gitlab.com/group/repo/-/merge_requests"


class TestCheckLockFileHazard:
    @pytest.mark.parametrize(
        ("ignored", "committed"), [(False, False), (True, False), (False, True)]
    )
    def test_passes_unless_both(
        self, tmp_path: Path, ignored: bool, committed: bool
    ) -> None:
        repo = FakeRepo(tmp_path, ignored=ignored, committed=committed)
        check_lock_file_hazard(tmp_path / "Cargo.toml", repo)

    def test_fails_when_ignored_and_committed(self, tmp_path: Path) -> None:
        repo = FakeRepo(tmp_path, ignored=True, committed=True)
        with pytest.raises(ValidationError) as exc_info:
            check_lock_file_hazard(tmp_path / "Cargo.toml", repo)
        message = str(exc_info.value)
        assert "Cargo.lock" in message
        assert ".gitignore" in message

    def test_fails_outside_repository(self, tmp_path: Path) -> None:
        with pytest.raises(ResolutionError):
            check_lock_file_hazard(tmp_path / "Cargo.toml", FakeRepo(None))


class TestGitCli:
    @patch("cargo_plz.repo.git")
    def test_root(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.return_value = str(tmp_path)
        assert GitCli().root(tmp_path / "Cargo.toml") == tmp_path
        mock_git.assert_called_once_with("rev-parse", "--show-toplevel", cwd=tmp_path)

    @patch("cargo_plz.repo.git")
    def test_root_outside_repository(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = subprocess.CalledProcessError(128, ["git"])
        with pytest.raises(ResolutionError, match="git repository"):
            GitCli().root(tmp_path / "Cargo.toml")

    @patch("cargo_plz.repo.git_succeeds")
    def test_predicates(self, mock_ok: MagicMock, tmp_path: Path) -> None:
        mock_ok.return_value = True
        lock = tmp_path / "Cargo.lock"

        assert GitCli().is_ignored(tmp_path, lock)
        mock_ok.assert_called_with(
            "check-ignore", "--no-index", str(lock.resolve()), cwd=tmp_path
        )
        assert GitCli().is_committed(tmp_path, lock)
        mock_ok.assert_called_with(
            "ls-files", "--error-unmatch", str(lock.resolve()), cwd=tmp_path
        )

    @patch("cargo_plz.repo.git_succeeds")
    def test_predicate_git_failure(self, mock_ok: MagicMock, tmp_path: Path) -> None:
        mock_ok.side_effect = subprocess.CalledProcessError(
            128, ["git"], "", "fatal: outside repository"
        )
        with pytest.raises(ResolutionError, match="outside repository"):
            GitCli().is_committed(tmp_path, tmp_path / "Cargo.lock")

    @patch("cargo_plz.repo.git")
    def test_default_remote_url(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.return_value = "git@github.com:owner/repo.git"
        assert GitCli().default_remote_url(tmp_path) == "git@github.com:owner/repo.git"

    @patch("cargo_plz.repo.git")
    def test_no_remote(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.return_value = ""
        with pytest.raises(ResolutionError, match="origin"):
            GitCli().default_remote_url(tmp_path)


def _run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args], cwd=str(cwd), text=True, capture_output=True, check=True
    )


@pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
class TestLockFileHazardInGitRepo:
    """Run the hazard check against a real repository."""

    @pytest.fixture
    def git_repo(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        root = tmp_path / "repo"
        for crate in ("foo", "bar"):
            (root / "crates" / crate).mkdir(parents=True)
            (root / "crates" / crate / "Cargo.toml").write_text(
                f'[package]\nname = "{crate}"\nversion = "0.1.0"\n'
            )
            (root / "crates" / crate / "Cargo.lock").write_text("version = 3\n")
        (root / ".gitignore").write_text("Cargo.lock\n")

        _run_git(["init", "-q"], cwd=root)
        _run_git(["config", "user.name", "cargo-plz"], cwd=root)
        _run_git(["config", "user.email", "cargo-plz@example.com"], cwd=root)
        _run_git(["config", "commit.gpgsign", "false"], cwd=root)
        _run_git(["add", "."], cwd=root)
        # foo's lock file is committed despite being ignored, bar's isn't
        _run_git(["add", "-f", "crates/foo/Cargo.lock"], cwd=root)
        _run_git(["commit", "-q", "-m", "init"], cwd=root)
        return root

    def test_root(self, git_repo: Path) -> None:
        manifest = git_repo / "crates" / "foo" / "Cargo.toml"
        assert GitCli().root(manifest).resolve() == git_repo.resolve()

    def test_ignored_and_committed(self, git_repo: Path) -> None:
        with pytest.raises(ValidationError, match="Cargo.lock"):
            check_lock_file_hazard(git_repo / "crates" / "foo" / "Cargo.toml", GitCli())

    def test_relative_manifest_from_subdirectory(
        self, git_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(git_repo / "crates")
        with pytest.raises(ValidationError, match="Cargo.lock"):
            check_lock_file_hazard(Path("foo/Cargo.toml"), GitCli())

    def test_ignored_only_passes(
        self, git_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        check_lock_file_hazard(git_repo / "crates" / "bar" / "Cargo.toml", GitCli())
        monkeypatch.chdir(git_repo / "crates")
        check_lock_file_hazard(Path("bar/Cargo.toml"), GitCli())

    def test_predicates(self, git_repo: Path) -> None:
        repo = GitCli()
        foo_lock = git_repo / "crates" / "foo" / "Cargo.lock"
        bar_lock = git_repo / "crates" / "bar" / "Cargo.lock"
        assert repo.is_ignored(git_repo, foo_lock)
        assert repo.is_committed(git_repo, foo_lock)
        assert repo.is_ignored(git_repo, bar_lock)
        assert not repo.is_committed(git_repo, bar_lock)
        assert not repo.is_ignored(git_repo, git_repo / "crates" / "bar" / "Cargo.toml")

    def test_path_outside_repository(self, git_repo: Path, tmp_path: Path) -> None:
        with pytest.raises(ResolutionError, match="ls-files"):
            GitCli().is_committed(git_repo, tmp_path / "elsewhere" / "Cargo.lock")

    def test_outside_any_repository(self, tmp_path: Path) -> None:
        outside = tmp_path / "plain"
        outside.mkdir()
        with pytest.raises(ResolutionError, match="git repository"):
            check_lock_file_hazard(outside / "Cargo.toml", GitCli())
