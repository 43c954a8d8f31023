"""CLI entry point for cargo-plz."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import SecretStr

from cargo_plz.config import load_config
from cargo_plz.errors import ConfigurationError
from cargo_plz.forge import ForgeKind
from cargo_plz.manifest import manifest_path
from cargo_plz.metadata import load_metadata
from cargo_plz.models import RawInputs, UpdateRequest
from cargo_plz.shell import step
from cargo_plz.update import assemble

F = TypeVar("F", bound=Callable[..., Any])


def user_config_dir() -> Path | None:
    """User configuration directory (APPDATA, XDG_CONFIG_HOME or ~/.config)."""
    if sys.platform.startswith("win"):
        app_data = os.environ.get("APPDATA")
        return Path(app_data) if app_data else None
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def _non_empty(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> str | None:
    if value is not None and not value.strip():
        raise click.BadParameter("must not be empty")
    return value


def update_options(*, pr: bool = False) -> Callable[[F], F]:
    """Options shared by `update` and `update-with-pr`.

    Args:
        pr: Make --git-token and --repo-url required, since a pull request
            can't be opened without them.
    """
    path = click.Path(dir_okay=False, path_type=Path)
    options = [
        click.option(
            "--manifest-path",
            "--project-manifest",
            "manifest_path",
            type=path,
            help="Path to the Cargo.toml of the project to update. "
            "Defaults to the Cargo.toml of the current directory.",
        ),
        click.option(
            "--registry-manifest-path",
            "--registry-project-manifest",
            "registry_manifest_path",
            type=path,
            help="Path to the Cargo.toml of the released version of the project. "
            "Defaults to comparing with the packages published in the registry.",
        ),
        click.option(
            "-p",
            "--package",
            callback=_non_empty,
            help="Update only this package instead of the whole workspace.",
        ),
        click.option(
            "--no-changelog", is_flag=True, help="Don't create/update changelogs."
        ),
        click.option(
            "--release-date",
            callback=_non_empty,
            help="Date of the release, YYYY-MM-DD. Defaults to today.",
        ),
        click.option(
            "--registry",
            callback=_non_empty,
            help="Registry where the packages are stored (from the cargo config).",
        ),
        click.option(
            "-u",
            "--update-deps",
            is_flag=True,
            help="Update all the dependencies in Cargo.lock, "
            "not only the workspace packages.",
        ),
        click.option(
            "--changelog-config",
            type=click.Path(path_type=Path),
            envvar="GIT_CLIFF_CONFIG",
            show_envvar=True,
            metavar="PATH",
            help="Path to the git-cliff configuration file. "
            "Defaults to <config dir>/git-cliff/cliff.toml if present.",
        ),
        click.option(
            "--allow-dirty",
            is_flag=True,
            help="Allow updating a dirty working directory.",
        ),
        click.option(
            "--repo-url",
            required=pr,
            callback=_non_empty,
            help="Repository url, used for changelog release links and pull requests. "
            "Defaults to the url of the `origin` remote.",
        ),
        click.option(
            "--config",
            "config_path",
            type=path,
            help="Path to release-plz.toml. Defaults to release-plz.toml or "
            ".release-plz.toml in the current directory.",
        ),
        click.option(
            "--git-token",
            "--github-token",
            "git_token",
            envvar="GIT_TOKEN",
            show_envvar=True,
            required=pr,
            callback=_non_empty,
            help="Git token used to create the pull request.",
        ),
        click.option(
            "--forge",
            "--backend",
            type=click.Choice([kind.value for kind in ForgeKind]),
            default=ForgeKind.GITHUB.value,
            show_default=True,
            help="Kind of git host where the project is hosted.",
        ),
        click.option(
            "--json",
            "as_json",
            is_flag=True,
            help="Print the resolved request as JSON.",
        ),
    ]

    def decorator(func: F) -> F:
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


def _raw_inputs(options: dict[str, Any]) -> RawInputs:
    """Read process state once and combine it with the parsed options."""
    token = options.pop("git_token")
    forge = ForgeKind(options.pop("forge"))
    return RawInputs(
        cwd=Path.cwd(),
        config_dir=user_config_dir(),
        git_token=SecretStr(token) if token else None,
        forge=forge,
        **options,
    )


def _print_summary(request: UpdateRequest) -> None:
    step("Update request")
    click.echo(f"  manifest:            {request.local_manifest}")
    if request.registry_manifest:
        click.echo(f"  registry manifest:   {request.registry_manifest}")
    if request.registry:
        click.echo(f"  registry:            {request.registry}")
    click.echo(f"  package:             {request.single_package or '<all>'}")
    click.echo(f"  dependencies update: {request.dependencies_update}")
    click.echo(f"  allow dirty:         {request.allow_dirty}")
    if request.changelog_req is None:
        click.echo("  changelog:           disabled")
    else:
        release_date = request.changelog_req.release_date or "today"
        click.echo(f"  changelog:           release date {release_date}")
    click.echo(f"  repo url:            {request.repo_url or '<unknown>'}")
    if request.forge is not None:
        forge = request.forge
        click.echo(f"  forge:               {forge.kind} {forge.owner}/{forge.repo}")


def _run_update(options: dict[str, Any], *, pr: bool) -> UpdateRequest:
    as_json = options.pop("as_json")
    raw = _raw_inputs(options)
    config = load_config(raw.config_path, raw.cwd)
    metadata = load_metadata(manifest_path(raw))
    request = assemble(raw, config, metadata)

    if pr and request.forge is None:
        raise ConfigurationError(
            "Can't create PR: cannot determine the repository from "
            f"--repo-url {raw.repo_url}"
        )

    if as_json:
        click.echo(request.model_dump_json(indent=2))
    else:
        _print_summary(request)
    return request


@click.group()
@click.version_option(package_name="cargo-plz")
def cli() -> None:
    """Update cargo workspace versions and changelogs from commit messages."""


@cli.command()
@update_options()
def update(**options: Any) -> None:
    """Update the project locally, without opening a pull request.

    If the repository url is known, it is used to add release links to
    the changelog.
    """
    _run_update(options, pr=False)


@cli.command("update-with-pr")
@update_options(pr=True)
def update_with_pr(**options: Any) -> None:
    """Update the project and prepare a pull request on the git forge."""
    _run_update(options, pr=True)
