"""Git forge selection.

Decides which hosting backend pull requests are opened on and builds a
typed handle for its client. Nothing here talks to the network: handles
only carry what a client needs (owner, repository, token, API base URL).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, SecretStr

from .errors import ConfigurationError, ResolutionError
from .repo import RepoUrl

GITHUB_API = "https://api.github.com"


class ForgeKind(str, Enum):
    GITHUB = "github"
    GITEA = "gitea"
    GITLAB = "gitlab"


class GitHub(BaseModel):
    kind: Literal["github"] = "github"
    owner: str
    repo: str
    token: SecretStr
    base_url: str = GITHUB_API

    @classmethod
    def from_repo_url(cls, url: RepoUrl, token: SecretStr) -> GitHub:
        """Build a handle from the first two path segments of url.

        Raises:
            ResolutionError: If the owner or repository segment is missing.
        """
        segments = url.path_segments
        if not segments:
            raise ResolutionError(f"cannot find github owner and repo from url {url}")
        if len(segments) < 2:
            raise ResolutionError(f"cannot find github repo from url {url}")
        return cls(owner=segments[0], repo=segments[1], token=token)


class Gitea(BaseModel):
    """Self-hosted Gitea (or Forgejo) instance."""

    kind: Literal["gitea"] = "gitea"
    owner: str
    repo: str
    token: SecretStr
    base_url: str

    @classmethod
    def from_repo_url(cls, url: RepoUrl, token: SecretStr) -> Gitea:
        return cls(
            owner=url.owner,
            repo=url.name,
            token=token,
            base_url=f"{url.base_url()}/api/v1",
        )


class GitLab(BaseModel):
    """GitLab instance; owner is the full (possibly nested) namespace."""

    kind: Literal["gitlab"] = "gitlab"
    owner: str
    repo: str
    token: SecretStr
    base_url: str

    @classmethod
    def from_repo_url(cls, url: RepoUrl, token: SecretStr) -> GitLab:
        return cls(
            owner=url.owner,
            repo=url.name,
            token=token,
            base_url=f"{url.base_url()}/api/v4",
        )


ForgeHandle = Annotated[Union[GitHub, Gitea, GitLab], Field(discriminator="kind")]


def resolve_forge(
    repo_url: RepoUrl | None,
    token: SecretStr | None,
    kind: ForgeKind,
) -> GitHub | Gitea | GitLab | None:
    """Pick the forge pull requests will be opened on.

    Opening a pull request is opt-in: without a token this returns None
    whatever the URL or forge kind, and the update stays local.

    Raises:
        ConfigurationError: If a GitHub forge is requested for a repository
            hosted elsewhere, or a token is given without a repository URL.
        ResolutionError: If owner and repository cannot be read from the URL.
    """
    if token is None:
        return None
    if repo_url is None:
        raise ConfigurationError(
            "Can't create PR: a git token was provided but the repository url "
            "is unknown. Pass --repo-url."
        )

    if kind is ForgeKind.GITHUB:
        if not repo_url.is_on_github():
            raise ConfigurationError(
                f"Can't create PR: the repository {repo_url} is not hosted in "
                "GitHub. Please select a different forge (--forge gitea or "
                "--forge gitlab)."
            )
        return GitHub.from_repo_url(repo_url, token)
    if kind is ForgeKind.GITEA:
        return Gitea.from_repo_url(repo_url, token)
    return GitLab.from_repo_url(repo_url, token)
