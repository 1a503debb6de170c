"""Distribution-specific exceptions for the CodeQL distribution manager.

Custom exception hierarchy for registry, install and resolution
operations to provide clear error handling and user-friendly messages.
"""

from datetime import datetime
from typing import Optional


class DistributionError(Exception):
    """Base exception for all distribution-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class ConfiguredPathNotFoundError(DistributionError):
    """The configured custom launcher path does not exist."""

    def __init__(self, path: str):
        self.path = path
        message = (
            f'The CodeQL executable path is specified as "{path}" by a configuration '
            "setting, but a CodeQL executable could not be found at that path. Please "
            "check that a CodeQL executable exists at the specified path or remove the "
            "setting."
        )
        super().__init__(message)


class GitHubError(DistributionError):
    """Base exception for release registry errors."""
    pass


class GitHubConnectionError(GitHubError):
    """Unable to reach the release registry."""
    pass


class GitHubApiError(GitHubError):
    """The registry answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        message = f"API call failed with status code {status}, body: {body}"
        super().__init__(message)


class GitHubRateLimitedError(GitHubApiError):
    """The registry rejected the call because the rate limit was exhausted."""

    def __init__(self, status: int, body: str, rate_limit_reset_date: datetime):
        super().__init__(status, body)
        self.rate_limit_reset_date = rate_limit_reset_date


class InsecureRedirectError(GitHubError):
    """A redirect pointed at a non-https location."""

    def __init__(self, url: str):
        self.url = url
        message = f"Encountered a non-https redirect to '{url}', rejecting"
        super().__init__(message)


class NoCompatibleReleaseError(GitHubError):
    """No release satisfies the version constraint."""

    def __init__(self, constraint_description: Optional[str] = None):
        self.constraint_description = constraint_description
        message = (
            "No compatible CodeQL CLI releases were found. "
            "Please check that the CodeQL extension is up to date."
        )
        if constraint_description:
            message += f" (required version: {constraint_description})"
        super().__init__(message)


class UnexpectedAssetCountError(DistributionError):
    """A release does not carry exactly one asset."""

    def __init__(self, release_name: str, asset_count: int):
        self.release_name = release_name
        self.asset_count = asset_count
        message = (
            f"Release '{release_name}' had an unexpected number of assets "
            f"({asset_count}, expected 1)"
        )
        super().__init__(message)


class ExtractionError(DistributionError):
    """Writing an archive entry to disk failed."""

    def __init__(self, path: str, original_error: Exception = None):
        self.path = path
        message = f"Failed to extract archive to '{path}'"
        super().__init__(message, original_error)
