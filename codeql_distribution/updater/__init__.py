"""Updater module for GitHub integration.

This module handles CodeQL CLI release management:
- GitHubReleasesClient: GitHub API integration for release lookup and download
- ManagedDistributionInstaller: Download, extraction and folder rotation
- Version models: Version, VersionConstraint and comparison
"""

from .version import (
    DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT,
    Version,
    VersionConstraint,
    try_parse_version_string,
    version_compare,
)
from .exceptions import (
    DistributionError,
    ConfiguredPathNotFoundError,
    GitHubError,
    GitHubConnectionError,
    GitHubApiError,
    GitHubRateLimitedError,
    InsecureRedirectError,
    NoCompatibleReleaseError,
    UnexpectedAssetCountError,
    ExtractionError,
)
from .github_client import (
    GitHubReleasesClient,
    GitHubRelease,
    Release,
    ReleaseAsset,
)
from .installer import (
    ManagedDistributionInstaller,
    ProgressUpdate,
    ProgressCallback,
    extract_zip_archive,
)

__all__ = [
    # Versions
    "DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT",
    "Version",
    "VersionConstraint",
    "try_parse_version_string",
    "version_compare",
    # Errors
    "DistributionError",
    "ConfiguredPathNotFoundError",
    "GitHubError",
    "GitHubConnectionError",
    "GitHubApiError",
    "GitHubRateLimitedError",
    "InsecureRedirectError",
    "NoCompatibleReleaseError",
    "UnexpectedAssetCountError",
    "ExtractionError",
    # GitHub client
    "GitHubReleasesClient",
    "GitHubRelease",
    "Release",
    "ReleaseAsset",
    # Installer
    "ManagedDistributionInstaller",
    "ProgressUpdate",
    "ProgressCallback",
    "extract_zip_archive",
]
