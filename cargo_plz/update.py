"""Update request assembly: flags + config + repository → UpdateRequest.

This module merges every input of `cargo-plz update` into one validated
UpdateRequest:
1. Reject flag combinations that contradict each other
2. Locate the manifest and check the repository for a lock-file hazard
3. Merge CLI flags with the [workspace] defaults of release-plz.toml
4. Determine the repository URL (optional: only used for links and PRs)
5. Resolve the changelog configuration and release date
6. Pick the git forge used to open the pull request, if a token was given

Any misconfiguration aborts the whole assembly. The only soft failure is an
unknown repository URL: the changelog then simply has no release links.
"""

from __future__ import annotations

import re
from datetime import date

from .changelog import default_changelog_config_path, resolve_changelog_config
from .config import fill_update_config
from .errors import ConfigurationError, ReleaseError, ResolutionError, ValidationError
from .forge import resolve_forge
from .manifest import get_repo_url, manifest_path
from .models import ChangelogRequest, Config, PackageGraph, RawInputs, UpdateRequest
from .repo import GitCli, RepoIntrospection, RepoUrl, check_lock_file_hazard
from .shell import warn

_DATE_FORMAT = re.compile(r"\d{4}-\d{2}-\d{2}")


def check_conflicting_args(raw: RawInputs) -> None:
    """Reject options that cannot be used together.

    Raises:
        ConfigurationError: Naming both options of the conflicting pair.
    """
    conflicts = [
        ("--no-changelog", raw.no_changelog, "--release-date", raw.release_date),
        (
            "--no-changelog",
            raw.no_changelog,
            "--changelog-config",
            raw.changelog_config,
        ),
        (
            "--registry",
            raw.registry,
            "--registry-manifest-path",
            raw.registry_manifest_path,
        ),
    ]
    for first, first_value, second, second_value in conflicts:
        if first_value and second_value is not None:
            raise ConfigurationError(
                f"the argument '{first}' cannot be used with '{second}'"
            )


def parse_release_date(value: str) -> date:
    """Parse a release date in the strict YYYY-MM-DD format.

    Raises:
        ValidationError: If the format is wrong or the date doesn't exist.
    """
    if not _DATE_FORMAT.fullmatch(value):
        raise ValidationError(
            f"cannot parse release_date {value!r} to y-m-d format (expected YYYY-MM-DD)"
        )
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(
            f"cannot parse release_date {value!r} to y-m-d format: {exc}"
        ) from exc


def dependencies_update(raw: RawInputs, config: Config) -> bool:
    """Either the CLI flag or [workspace] dependencies_update enables it."""
    return raw.update_deps or config.workspace.dependencies_update is True


def allow_dirty(raw: RawInputs, config: Config) -> bool:
    """Either the CLI flag or [workspace] allow_dirty enables it."""
    return raw.allow_dirty or config.workspace.allow_dirty is True


def _repo_url_or_warn(
    raw: RawInputs, config: Config, repo: RepoIntrospection
) -> RepoUrl | None:
    try:
        return get_repo_url(raw, config, repo)
    except ReleaseError as exc:
        warn(
            "Cannot determine repo url. The changelog won't contain the release "
            f"link. Error: {exc.format_message()}"
        )
        return None


def assemble(
    raw: RawInputs,
    config: Config,
    metadata: PackageGraph,
    repo: RepoIntrospection | None = None,
) -> UpdateRequest:
    """Build the UpdateRequest for one run of `cargo-plz update`.

    Args:
        raw: CLI values and process state read by the CLI.
        config: Parsed release-plz.toml (Config() if there is none).
        metadata: Package graph of the workspace being updated.
        repo: Repository introspection; defaults to the git CLI.

    Returns:
        A fully resolved and validated request.

    Raises:
        ConfigurationError: If options or configuration sections conflict.
        ResolutionError: If the manifest, repository or package can't be found.
        ValidationError: If an input is present but unusable.
    """
    repo = repo if repo is not None else GitCli()
    check_conflicting_args(raw)

    project_manifest = manifest_path(raw)
    check_lock_file_hazard(project_manifest, repo)

    try:
        request = UpdateRequest.from_metadata(metadata)
    except ResolutionError as exc:
        raise ResolutionError(
            f"Cannot find file {project_manifest}. Make sure you are inside a rust "
            "project or that --manifest-path points to a valid Cargo.toml file. "
            f"({exc.format_message()})"
        ) from exc

    request.dependencies_update = dependencies_update(raw, config)
    request.allow_dirty = allow_dirty(raw, config)
    request.repo_url = _repo_url_or_warn(raw, config, repo)

    if raw.registry_manifest_path is not None:
        request.set_registry_manifest(raw.registry_manifest_path)

    fill_update_config(config, raw.no_changelog, request)

    release_date = (
        parse_release_date(raw.release_date) if raw.release_date is not None else None
    )
    if not raw.no_changelog:
        pr_link = request.repo_url.git_pr_link() if request.repo_url else None
        changelog_config = resolve_changelog_config(
            cli_path=raw.changelog_config,
            workspace_path=config.workspace.changelog_config,
            inline_config=config.changelog,
            pr_link=pr_link,
            default_path=default_changelog_config_path(raw.config_dir),
        )
        request.changelog_req = ChangelogRequest(
            release_date=release_date, changelog_config=changelog_config
        )

    if raw.package is not None:
        request.set_single_package(raw.package)
    if raw.registry is not None:
        request.set_registry(raw.registry)
    if config.workspace.release_commits is not None:
        request.set_release_commits(config.workspace.release_commits)

    if request.repo_url is not None:
        request.forge = resolve_forge(request.repo_url, raw.git_token, raw.forge)

    return request
