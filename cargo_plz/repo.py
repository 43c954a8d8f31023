"""Repository introspection and pre-flight checks.

Everything here is read-only: we ask git where the repository root is,
whether a path is ignored or committed, and what the default remote is.
The RepoIntrospection protocol lets the update assembler run against a
fake repository in tests.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

from pydantic import BaseModel

from .errors import ResolutionError, ValidationError
from .shell import git, git_succeeds

LOCK_FILE = "Cargo.lock"

# scp-like syntax: [user@]host:owner/repo(.git)
_SCP_LIKE = re.compile(r"^(?:[\w.+-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")


class RepoIntrospection(Protocol):
    """Read-only questions the update pipeline asks about a repository."""

    def root(self, path: Path) -> Path: ...

    def is_ignored(self, repo_root: Path, path: Path) -> bool: ...

    def is_committed(self, repo_root: Path, path: Path) -> bool: ...

    def default_remote_url(self, repo_root: Path) -> str: ...


class GitCli:
    """RepoIntrospection backed by the git command line."""

    def root(self, path: Path) -> Path:
        """Return the top-level directory of the repository containing path."""
        directory = path if path.is_dir() else path.parent
        try:
            top = git("rev-parse", "--show-toplevel", cwd=directory)
        except (subprocess.CalledProcessError, OSError) as exc:
            raise ResolutionError(
                f"cannot find the git repository containing {path}"
            ) from exc
        return Path(top)

    def is_ignored(self, repo_root: Path, path: Path) -> bool:
        return self._predicate("check-ignore", "--no-index", path, repo_root)

    def is_committed(self, repo_root: Path, path: Path) -> bool:
        return self._predicate("ls-files", "--error-unmatch", path, repo_root)

    def _predicate(
        self, command: str, flag: str, path: Path, repo_root: Path
    ) -> bool:
        # git resolves relative paths against its own cwd
        try:
            return git_succeeds(command, flag, str(path.resolve()), cwd=repo_root)
        except subprocess.CalledProcessError as exc:
            raise ResolutionError(
                f"git {command} failed for {path}: {(exc.stderr or '').strip()}"
            ) from exc

    def default_remote_url(self, repo_root: Path) -> str:
        url = git("config", "--get", "remote.origin.url", cwd=repo_root, check=False)
        if not url:
            raise ResolutionError(f"no `origin` remote configured in {repo_root}")
        return url


class RepoUrl(BaseModel):
    """Location of a repository on a git forge.

    Attributes:
        scheme: "https" or "http". SSH remotes are reported as https since
                links and API calls go over the web.
        host: Hostname, without port.
        port: Explicit port for http(s) URLs, if any.
        path_segments: Non-empty path components, ".git" stripped from the last.
    """

    scheme: str = "https"
    host: str
    port: int | None = None
    path_segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, url: str) -> RepoUrl:
        """Parse a remote URL (https, http, ssh or scp-like).

        Raises:
            ResolutionError: If no host, owner and repository can be found.
        """
        url = url.strip()
        scp = _SCP_LIKE.match(url) if "://" not in url else None
        if scp:
            scheme, host, port, path = "https", scp["host"], None, scp["path"]
        else:
            parts = urlsplit(url)
            try:
                port = parts.port
            except ValueError as exc:
                raise ResolutionError(f"invalid port in git url {url}") from exc
            host = parts.hostname or ""
            scheme = "http" if parts.scheme == "http" else "https"
            if parts.scheme not in ("http", "https"):
                port = None
            path = parts.path

        if not host:
            raise ResolutionError(f"cannot find host in git url {url}")
        segments = tuple(s for s in path.split("/") if s)
        if segments and segments[-1].endswith(".git"):
            segments = (*segments[:-1], segments[-1][: -len(".git")])
        if len(segments) < 2:
            raise ResolutionError(f"cannot find owner and repo in git url {url}")
        return cls(scheme=scheme, host=host.lower(), port=port, path_segments=segments)

    @property
    def owner(self) -> str:
        """Owner or namespace: every path segment but the last."""
        if len(self.path_segments) < 2:
            raise ResolutionError(f"cannot find owner in git url {self.full_url()}")
        return "/".join(self.path_segments[:-1])

    @property
    def name(self) -> str:
        if not self.path_segments:
            raise ResolutionError(f"cannot find repo in git url {self.full_url()}")
        return self.path_segments[-1]

    @property
    def full_host(self) -> str:
        return f"{self.host}:{self.port}" if self.port else self.host

    def base_url(self) -> str:
        """Scheme and host, e.g. "https://gitea.example.com:3000"."""
        return f"{self.scheme}://{self.full_host}"

    def full_url(self) -> str:
        path = "/".join(self.path_segments)
        return f"{self.base_url()}/{path}" if path else self.base_url()

    def is_on_github(self) -> bool:
        return "github" in self.host

    def is_on_gitlab(self) -> bool:
        return "gitlab" in self.host

    def git_pr_link(self) -> str:
        """Prefix of pull request links, e.g. https://github.com/o/r/pull."""
        pr_path = "-/merge_requests" if self.is_on_gitlab() else "pull"
        return f"{self.full_url()}/{pr_path}"

    def __str__(self) -> str:
        return self.full_url()


def check_lock_file_hazard(manifest_path: Path, repo: RepoIntrospection) -> None:
    """Fail if the lock file next to the manifest is both ignored and committed.

    Such a lock file is used by whoever has it locally and silently ignored
    by fresh clones, so dependency resolution differs between machines.

    Raises:
        ResolutionError: If the manifest is not inside a git repository, or
            git fails to answer.
        ValidationError: If the lock file is ignored and committed at once.
    """
    manifest_path = manifest_path.absolute()
    repo_root = repo.root(manifest_path)
    lock_path = manifest_path.with_name(LOCK_FILE)

    ignored = repo.is_ignored(repo_root, lock_path)
    committed = repo.is_committed(repo_root, lock_path)
    if ignored and committed:
        raise ValidationError(
            f"{LOCK_FILE} is present in your .gitignore and is also committed "
            f"({lock_path}). Remove it from your repository or from your "
            "`.gitignore` file."
        )
