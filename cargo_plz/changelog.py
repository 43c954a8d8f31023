"""Changelog configuration discovery.

The changelog generator is configured either by a git-cliff file
(cliff.toml) or by the inline [changelog] table of release-plz.toml,
never by both.
"""

from __future__ import annotations

import re
from pathlib import Path

import pydantic

from .errors import ConfigurationError, ValidationError
from .models import (
    ChangelogConfig,
    ChangelogSection,
    ChangelogTemplate,
    CommitParser,
    GitSection,
    TextProcessor,
)
from .toml import load_table

CLIFF_CONFIG_FILE = "cliff.toml"

# Matches "(#123)" as appended by GitHub to squash-merge commit titles.
PR_NUMBER_PATTERN = r"\(#([0-9]+)\)"

SORT_ORDERS = ("oldest", "newest")

DEFAULT_HEADER = """\
# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.0.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).

## [Unreleased]
"""

DEFAULT_BODY = """\
## [{{ version | trim_start_matches(pat="v") }}]\
{%- if release_link -%}({{ release_link }}){% endif %} \
- {{ timestamp | date(format="%Y-%m-%d") }}
{% for group, commits in commits | group_by(attribute="group") %}
### {{ group | upper_first }}

{% for commit in commits %}
{%- if commit.scope -%}
- *({{commit.scope}})* {% if commit.breaking %}[**breaking**] {% endif %}{{ commit.message }}
{% else -%}
- {% if commit.breaking %}[**breaking**] {% endif %}{{ commit.message }}
{% endif -%}
{% endfor -%}
{% endfor %}
"""

DEFAULT_COMMIT_PARSERS = [
    CommitParser(message="^feat", group="added"),
    CommitParser(message="^changed", group="changed"),
    CommitParser(message="^deprecated", group="deprecated"),
    CommitParser(message="^fix", group="fixed"),
    CommitParser(message="^security", group="security"),
    CommitParser(message="^.*", group="other"),
]


def default_changelog_config_path(config_dir: Path | None) -> Path | None:
    """Location git-cliff reads its user-wide configuration from."""
    if config_dir is None:
        return None
    return config_dir / "git-cliff" / CLIFF_CONFIG_FILE


def load_changelog_config(path: Path) -> ChangelogConfig:
    """Parse a git-cliff configuration file.

    Raises:
        ConfigurationError: If the file is not valid TOML or has bad values.
    """
    data = load_table(path)
    try:
        return ChangelogConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(
            f"failed to parse git-cliff config file {path}:\n{exc}"
        ) from exc


def pr_link_preprocessor(pr_link: str) -> TextProcessor:
    """Rewrite "(#123)" in commit messages into a link to pull request 123."""
    replace = f"([#${{1}}]({pr_link}/${{1}}))"
    return TextProcessor(pattern=PR_NUMBER_PATTERN, replace=replace)


def _check_regex(pattern: str | None, where: str) -> None:
    if pattern is None:
        return
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(
            f"invalid `[changelog]` config: bad regex {pattern!r} in {where}: {exc}"
        ) from exc


def _validate_section(section: ChangelogSection) -> None:
    for processor in section.commit_preprocessors or []:
        _check_regex(processor.pattern, "commit_preprocessors")
    for processor in section.postprocessors or []:
        _check_regex(processor.pattern, "postprocessors")
    for parser in section.commit_parsers or []:
        _check_regex(parser.message, "commit_parsers")
        _check_regex(parser.body, "commit_parsers")
        _check_regex(parser.footer, "commit_parsers")
    for link_parser in section.link_parsers or []:
        _check_regex(link_parser.pattern, "link_parsers")
    _check_regex(section.tag_pattern, "tag_pattern")
    if section.sort_commits is not None and section.sort_commits not in SORT_ORDERS:
        raise ConfigurationError(
            f"invalid `[changelog]` config: sort_commits must be one of "
            f"{', '.join(SORT_ORDERS)}, got {section.sort_commits!r}"
        )


def to_changelog_config(
    section: ChangelogSection, pr_link: str | None
) -> ChangelogConfig:
    """Build a changelog configuration from the inline [changelog] table.

    Unset keys fall back to the keep-a-changelog defaults. When pr_link is
    given, pull request numbers in commit titles become links.

    Raises:
        ConfigurationError: If a regex or sort order in the table is invalid.
    """
    _validate_section(section)

    preprocessors = list(section.commit_preprocessors or [])
    if pr_link:
        preprocessors.append(pr_link_preprocessor(pr_link))

    return ChangelogConfig(
        changelog=ChangelogTemplate(
            header=section.header if section.header is not None else DEFAULT_HEADER,
            body=section.body if section.body is not None else DEFAULT_BODY,
            trim=True if section.trim is None else section.trim,
            postprocessors=list(section.postprocessors or []),
        ),
        git=GitSection(
            conventional_commits=True,
            filter_unconventional=False,
            commit_preprocessors=preprocessors,
            commit_parsers=list(section.commit_parsers or DEFAULT_COMMIT_PARSERS),
            link_parsers=list(section.link_parsers or []),
            protect_breaking_commits=bool(section.protect_breaking_commits),
            filter_commits=False,
            tag_pattern=section.tag_pattern,
            sort_commits=section.sort_commits or "oldest",
        ),
    )


def resolve_changelog_config(
    cli_path: Path | None,
    workspace_path: Path | None,
    inline_config: ChangelogSection,
    pr_link: str | None,
    default_path: Path | None = None,
) -> ChangelogConfig:
    """Decide which changelog configuration to use.

    Precedence: cli_path, then workspace_path, then default_path. A file
    the user named must exist; the default file is optional and, when
    absent, the inline [changelog] table is used instead.

    Raises:
        ValidationError: If a user-specified file does not exist.
        ConfigurationError: If a file and a non-empty inline table are both
            given, or either of them is invalid.
    """
    user_path = cli_path if cli_path is not None else workspace_path
    if user_path is not None:
        if not user_path.exists():
            raise ValidationError(f"cannot read {user_path}")
        path: Path | None = user_path
    else:
        path = default_path

    if path is not None and path.exists():
        if not inline_config.is_default():
            raise ConfigurationError(
                "specifying the `[changelog]` configuration has no effect if "
                f"`changelog_config` path is specified ({path}). "
                "The two are mutually exclusive."
            )
        return load_changelog_config(path)

    return to_changelog_config(inline_config, pr_link)
