"""Outcomes of distribution lookup and update checks.

Each outcome is a small frozen dataclass; callers branch on them with
``isinstance``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from codeql_distribution.updater.github_client import Release
from codeql_distribution.updater.version import Version


@dataclass(frozen=True)
class CompatibleDistribution:
    """A launcher whose version satisfies the constraint."""
    codeql_path: Path
    version: Version


@dataclass(frozen=True)
class UnknownCompatibilityDistribution:
    """A launcher whose version could not be determined."""
    codeql_path: Path


@dataclass(frozen=True)
class IncompatibleDistribution:
    """A launcher whose version fails the constraint."""
    codeql_path: Path
    version: Version


@dataclass(frozen=True)
class NoDistribution:
    """No launcher was found."""
    pass


FindDistributionResult = Union[
    CompatibleDistribution,
    UnknownCompatibilityDistribution,
    IncompatibleDistribution,
    NoDistribution,
]


@dataclass(frozen=True)
class AlreadyCheckedRecently:
    """The update check ran within the cooldown; the registry was not contacted."""
    pass


@dataclass(frozen=True)
class AlreadyUpToDate:
    """The installed release is the latest compatible one."""
    pass


@dataclass(frozen=True)
class InvalidLocation:
    """The active launcher is not managed here, so it cannot be updated."""
    pass


@dataclass(frozen=True)
class UpdateAvailable:
    """A newer compatible release (or a first install) is available."""
    updated_release: Release


DistributionUpdateCheckResult = Union[
    AlreadyCheckedRecently,
    AlreadyUpToDate,
    InvalidLocation,
    UpdateAvailable,
]
