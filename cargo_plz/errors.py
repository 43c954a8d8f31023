"""Error types for cargo-plz.

Every error raised while resolving an update request derives from
ReleaseError. They are click exceptions, so the CLI reports them as
``Error: <message>`` and exits with status 1 without extra handling.
"""

from __future__ import annotations

import click


class ReleaseError(click.ClickException):
    """Base class for all cargo-plz errors."""


class ConfigurationError(ReleaseError):
    """Raised when options or configuration sections contradict each other."""


class ResolutionError(ReleaseError):
    """Raised when a manifest, repository, URL or package cannot be found."""


class ValidationError(ReleaseError):
    """Raised when an input is present but unusable (bad date, hazard, ...)."""
