"""Version parsing utilities.

Cargo requires full semver versions, so unlike Python packages there is no
padding of incomplete version strings here.
"""

from __future__ import annotations

import semver


def parse_version(version_str: str) -> semver.Version:
    """Parse a cargo package version into a semver.Version object.

    Prerelease and build metadata are kept ("1.0.0-rc.1+build.5").

    Raises:
        ValueError: If the string is not a valid semver version.
    """
    return semver.Version.parse(version_str)
