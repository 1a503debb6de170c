"""Semantic versions of the CodeQL CLI.

Parsing of release tags and CLI output, the total ordering used to pick
the newest release, and version constraints.
"""

import locale
import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Callable, Optional


VERSION_PATTERN = re.compile(
    r'^v?(\d+)\.(\d+)\.(\d+)'
    r'(?:-([0-9A-Za-z.-]+))?'
    r'(?:\+([0-9A-Za-z.-]+))?$'
)


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed MAJOR.MINOR.PATCH[-prerelease][+build] version."""
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build_metadata: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build_metadata:
            text += f"+{self.build_metadata}"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return version_compare(self, other) == 0

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return version_compare(self, other) < 0

    def __hash__(self) -> int:
        # Versions without a prerelease compare equal to any prerelease of the
        # same triple, so only the triple may contribute to the hash.
        return hash((self.major, self.minor, self.patch))


def try_parse_version_string(version_string: str) -> Optional[Version]:
    """
    Parse a release tag or version string.

    Args:
        version_string: e.g. "v2.3.1", "2.4.0-beta.1+abc"

    Returns:
        Version, or None if the string is not a valid version
    """
    if not isinstance(version_string, str):
        return None
    match = VERSION_PATTERN.match(version_string.strip())
    if not match:
        return None
    major, minor, patch, prerelease, build = match.groups()
    return Version(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease=prerelease,
        build_metadata=build,
    )


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def version_compare(a: Version, b: Version) -> int:
    """
    Compare two versions.

    Returns a positive number if a is greater than b, 0 if they are equal
    and a negative number if a is less than b. When the numeric parts
    match and both sides carry a prerelease string, the prerelease strings
    decide using the current locale's collation.
    """
    if a.major != b.major:
        return a.major - b.major
    if a.minor != b.minor:
        return a.minor - b.minor
    if a.patch != b.patch:
        return a.patch - b.patch
    if a.prerelease is not None and b.prerelease is not None:
        return _sign(locale.strcoll(a.prerelease, b.prerelease))
    return 0


@dataclass(frozen=True)
class VersionConstraint:
    """A description plus a predicate deciding which versions are usable."""
    description: str
    predicate: Callable[[Version], bool]

    def is_version_compatible(self, version: Version) -> bool:
        """True if ``version`` satisfies this constraint."""
        return bool(self.predicate(version))


# Applies to both extension-managed and user-supplied distributions.
DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT = VersionConstraint(
    description="2.*.*",
    predicate=lambda v: v.major == 2 and v.minor >= 0,
)
