"""Data models for cargo-plz.

These Pydantic models represent the inputs of an update (CLI values,
release-plz.toml, cargo metadata) and the canonical UpdateRequest built
from them.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .errors import ConfigurationError, ResolutionError, ValidationError
from .forge import ForgeHandle, ForgeKind
from .repo import RepoUrl
from .versions import parse_version

MANIFEST_FILE = "Cargo.toml"


class _Section(BaseModel):
    """A release-plz.toml table. Unknown keys are typos, so reject them."""

    model_config = ConfigDict(extra="forbid")


class TextProcessor(BaseModel):
    """Regex replacement applied to commit messages or rendered output."""

    pattern: str
    replace: str | None = None
    replace_command: str | None = None


class CommitParser(BaseModel):
    """Assigns commits matching a pattern to a changelog group."""

    message: str | None = None
    body: str | None = None
    footer: str | None = None
    group: str | None = None
    default_scope: str | None = None
    scope: str | None = None
    skip: bool | None = None


class LinkParser(BaseModel):
    """Turns references in commit messages (issues, tickets) into links."""

    pattern: str
    href: str
    text: str | None = None


class ChangelogTemplate(BaseModel):
    header: str | None = None
    body: str | None = None
    footer: str | None = None
    trim: bool | None = None
    postprocessors: list[TextProcessor] = Field(default_factory=list)


class GitSection(BaseModel):
    conventional_commits: bool | None = None
    filter_unconventional: bool | None = None
    split_commits: bool | None = None
    commit_preprocessors: list[TextProcessor] = Field(default_factory=list)
    commit_parsers: list[CommitParser] = Field(default_factory=list)
    link_parsers: list[LinkParser] = Field(default_factory=list)
    protect_breaking_commits: bool | None = None
    filter_commits: bool | None = None
    tag_pattern: str | None = None
    sort_commits: str | None = None


class ChangelogConfig(BaseModel):
    """Configuration handed to the changelog generator.

    Mirrors the [changelog] and [git] tables of a git-cliff cliff.toml;
    keys we don't model are ignored.
    """

    changelog: ChangelogTemplate = Field(default_factory=ChangelogTemplate)
    git: GitSection = Field(default_factory=GitSection)


class ChangelogSection(_Section):
    """Inline [changelog] table of release-plz.toml."""

    header: str | None = None
    body: str | None = None
    trim: bool | None = None
    commit_preprocessors: list[TextProcessor] | None = None
    postprocessors: list[TextProcessor] | None = None
    sort_commits: str | None = None
    link_parsers: list[LinkParser] | None = None
    commit_parsers: list[CommitParser] | None = None
    protect_breaking_commits: bool | None = None
    tag_pattern: str | None = None

    def is_default(self) -> bool:
        return self == ChangelogSection()


class ChangelogRequest(BaseModel):
    """What the changelog generator should do for this update.

    Attributes:
        release_date: Date written in the changelog. None means today,
                      resolved by the generator.
        changelog_config: Template and commit parsing configuration.
    """

    release_date: date | None = None
    changelog_config: ChangelogConfig | None = None


class PackageUpdateConfig(_Section):
    """Per-package update settings. None means "use the built-in default"."""

    changelog_update: bool | None = None
    changelog_path: Path | None = None
    semver_check: bool | None = None
    features_always_increment_minor: bool | None = None

    def package_defaults(self) -> PackageUpdateConfig:
        """Only the PackageUpdateConfig fields (drops section-specific keys)."""
        fields = set(PackageUpdateConfig.model_fields)
        return PackageUpdateConfig(**self.model_dump(include=fields))

    def merge(self, defaults: PackageUpdateConfig) -> PackageUpdateConfig:
        """Fill the fields not set here from defaults."""
        merged = defaults.package_defaults().model_dump(exclude_none=True)
        merged.update(self.package_defaults().model_dump(exclude_none=True))
        return PackageUpdateConfig(**merged)


class WorkspaceSection(PackageUpdateConfig):
    """[workspace] table: project-wide defaults."""

    dependencies_update: bool | None = None
    allow_dirty: bool | None = None
    changelog_config: Path | None = None
    release_commits: str | None = None
    repo_url: str | None = None


class PackageSection(PackageUpdateConfig):
    """[[package]] entry overriding workspace defaults for one package."""

    name: str


class Config(_Section):
    """Parsed release-plz.toml. An absent file yields Config()."""

    workspace: WorkspaceSection = Field(default_factory=WorkspaceSection)
    changelog: ChangelogSection = Field(default_factory=ChangelogSection)
    package: list[PackageSection] = Field(default_factory=list)

    @field_validator("package")
    @classmethod
    def _unique_package_names(
        cls, packages: list[PackageSection]
    ) -> list[PackageSection]:
        seen: set[str] = set()
        for pkg in packages:
            if pkg.name in seen:
                raise ValueError(f"package `{pkg.name}` is configured more than once")
            seen.add(pkg.name)
        return packages

    def packages(self) -> dict[str, PackageSection]:
        """Per-package overrides keyed by package name."""
        return {pkg.name: pkg for pkg in self.package}


class Package(BaseModel):
    """A package of the cargo workspace, as reported by `cargo metadata`."""

    name: str
    version: str
    manifest_path: Path

    @field_validator("version")
    @classmethod
    def _semver(cls, version: str) -> str:
        parse_version(version)
        return version


class PackageGraph(BaseModel):
    """Workspace packages and locations, as reported by `cargo metadata`."""

    workspace_root: Path
    target_directory: Path | None = None
    packages: list[Package] = Field(default_factory=list)

    @property
    def workspace_manifest(self) -> Path:
        return self.workspace_root / MANIFEST_FILE

    def package(self, name: str) -> Package | None:
        return next((p for p in self.packages if p.name == name), None)


class RawInputs(BaseModel):
    """Values given on the command line, plus process state read at startup.

    Every field is optional: None (or False) defers to release-plz.toml
    or to the built-in default.

    Attributes:
        cwd: Working directory of the process, used to locate Cargo.toml
             and release-plz.toml.
        config_dir: User configuration directory, used to find the
                    default git-cliff configuration.
    """

    cwd: Path
    config_dir: Path | None = None
    manifest_path: Path | None = None
    registry_manifest_path: Path | None = None
    package: str | None = None
    no_changelog: bool = False
    release_date: str | None = None
    registry: str | None = None
    update_deps: bool = False
    changelog_config: Path | None = None
    allow_dirty: bool = False
    repo_url: str | None = None
    config_path: Path | None = None
    git_token: SecretStr | None = None
    forge: ForgeKind = ForgeKind.GITHUB

    def manifest_source(self) -> Path | None:
        return self.manifest_path

    def repo_url_source(self) -> str | None:
        return self.repo_url


class UpdateRequest(BaseModel):
    """Everything the update step needs, resolved and validated.

    Built by update.assemble(); registry and registry_manifest are never
    both set, and neither are a disabled changelog and a release date.
    """

    local_manifest: Path
    metadata: PackageGraph
    registry_manifest: Path | None = None
    dependencies_update: bool = False
    allow_dirty: bool = False
    single_package: str | None = None
    registry: str | None = None
    changelog_req: ChangelogRequest | None = None
    forge: ForgeHandle | None = None
    repo_url: RepoUrl | None = None
    release_commits: str | None = None
    default_package_config: PackageUpdateConfig = Field(
        default_factory=PackageUpdateConfig
    )
    packages_config: dict[str, PackageUpdateConfig] = Field(default_factory=dict)

    @classmethod
    def from_metadata(cls, metadata: PackageGraph) -> UpdateRequest:
        """Start a request for the workspace described by metadata.

        Raises:
            ResolutionError: If the workspace manifest doesn't exist.
        """
        manifest = metadata.workspace_manifest
        if not manifest.is_file():
            raise ResolutionError(f"cannot find workspace manifest {manifest}")
        return cls(local_manifest=manifest.resolve(), metadata=metadata)

    def set_registry(self, registry: str) -> None:
        if self.registry_manifest is not None:
            raise ConfigurationError(
                f"registry `{registry}` cannot be used with the registry manifest "
                f"{self.registry_manifest}"
            )
        self.registry = registry

    def set_registry_manifest(self, path: Path) -> None:
        if self.registry is not None:
            raise ConfigurationError(
                f"registry manifest {path} cannot be used with registry "
                f"`{self.registry}`"
            )
        try:
            str(path).encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ResolutionError(f"path {path!r} is not valid UTF-8") from exc
        if not path.is_file():
            raise ResolutionError(f"cannot find project manifest {path}")
        self.registry_manifest = path.resolve()

    def set_single_package(self, name: str) -> None:
        if self.metadata.package(name) is None:
            raise ResolutionError(
                f"package `{name}` not found in workspace "
                f"{self.metadata.workspace_root}"
            )
        self.single_package = name

    def set_release_commits(self, pattern: str) -> None:
        """Only release when a commit message matches pattern."""
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValidationError(
                f"invalid regex in `release_commits` ({pattern!r}): {exc}"
            ) from exc
        self.release_commits = pattern

    def get_package_config(self, name: str) -> PackageUpdateConfig:
        return self.packages_config.get(name, self.default_package_config)
