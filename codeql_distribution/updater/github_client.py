"""GitHub API client for CodeQL CLI releases.

Lists releases of the distribution repository, picks the newest one that
satisfies a version constraint and streams release assets. Redirects are
followed by hand so that credentials never leave the GitHub API host.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests

from codeql_distribution.updater.exceptions import (
    GitHubApiError,
    GitHubConnectionError,
    GitHubError,
    GitHubRateLimitedError,
    InsecureRedirectError,
    NoCompatibleReleaseError,
    UnexpectedAssetCountError,
)
from codeql_distribution.updater.version import (
    Version,
    VersionConstraint,
    try_parse_version_string,
    version_compare,
)

logger = logging.getLogger("codeql_distribution.github_client")


# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_HOST = urlparse(GITHUB_API_BASE).netloc
DEFAULT_DISTRIBUTION_OWNER_NAME = "github"
DEFAULT_DISTRIBUTION_REPOSITORY_NAME = "codeql-cli-binaries"

JSON_ACCEPT = "application/vnd.github.v3+json"
OCTET_STREAM_ACCEPT = "application/octet-stream"

MAX_REDIRECTS = 20
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# Request timeout in seconds
REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class ReleaseAsset:
    """An asset attached to a release."""
    id: int
    name: str
    size: int

    @classmethod
    def from_api_response(cls, data: dict) -> "ReleaseAsset":
        """Create ReleaseAsset from GitHub API response."""
        return cls(
            id=int(data.get("id", 0)),
            name=data.get("name", ""),
            size=int(data.get("size", 0)),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict) -> "ReleaseAsset":
        return cls(id=data["id"], name=data["name"], size=data["size"])


@dataclass(frozen=True)
class Release:
    """A retrievable published version of the CLI."""
    id: int
    name: str
    created_at: str
    assets: Tuple[ReleaseAsset, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "assets": [asset.to_dict() for asset in self.assets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Release":
        """Create a Release from a dictionary written by ``to_dict``."""
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=data["createdAt"],
            assets=tuple(ReleaseAsset.from_dict(a) for a in data.get("assets", [])),
        )


@dataclass
class GitHubRelease:
    """A release as returned by the GitHub releases API."""
    id: int
    tag_name: str
    name: str
    created_at: str
    assets: List[ReleaseAsset]
    prerelease: bool
    draft: bool

    @property
    def version(self) -> Optional[Version]:
        """Parsed tag, or None if the tag is not a version."""
        return try_parse_version_string(self.tag_name)

    def to_release(self) -> Release:
        """Strip the registry-only fields."""
        return Release(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            assets=tuple(self.assets),
        )

    @classmethod
    def from_api_response(cls, data: dict) -> "GitHubRelease":
        """Create GitHubRelease from GitHub API response."""
        return cls(
            id=int(data.get("id", 0)),
            tag_name=data.get("tag_name") or "",
            name=data.get("name") or "",
            created_at=data.get("created_at") or "",
            assets=[ReleaseAsset.from_api_response(a) for a in data.get("assets", [])],
            prerelease=bool(data.get("prerelease", False)),
            draft=bool(data.get("draft", False)),
        )


def _compare_releases_descending(
    a: Tuple[Version, GitHubRelease],
    b: Tuple[Version, GitHubRelease]
) -> int:
    """Newest version first; equal versions newest creation date first."""
    comparison = version_compare(b[0], a[0])
    if comparison == 0:
        # ISO-8601 timestamps are fixed width, so lexical order is date order
        return (b[1].created_at > a[1].created_at) - (b[1].created_at < a[1].created_at)
    return comparison


def is_redirect_status_code(status_code: int) -> bool:
    return status_code in REDIRECT_STATUS_CODES


class GitHubReleasesClient:
    """Client for the GitHub releases API of a distribution repository."""

    def __init__(
        self,
        owner_name: str = DEFAULT_DISTRIBUTION_OWNER_NAME,
        repository_name: str = DEFAULT_DISTRIBUTION_REPOSITORY_NAME,
        personal_access_token: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
    ):
        """
        Initialize GitHub client.

        Args:
            owner_name: Owner of the distribution repository
            repository_name: Name of the distribution repository
            personal_access_token: Optional token sent as an authorization header
            timeout: Request timeout in seconds
        """
        self._owner_name = owner_name
        self._repository_name = repository_name
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": "codeql-distribution-manager",
        })

        self._default_headers: Dict[str, str] = {"accept": JSON_ACCEPT}
        if personal_access_token:
            self._default_headers["authorization"] = f"token {personal_access_token}"

    @property
    def owner_name(self) -> str:
        return self._owner_name

    @property
    def repository_name(self) -> str:
        return self._repository_name

    def _send(self, url: str, headers: Dict[str, str]) -> requests.Response:
        """Issue a single GET without following redirects."""
        try:
            logger.debug(f"Making request to: {url}")
            return self._session.get(
                url,
                headers=dict(headers),
                timeout=self._timeout,
                allow_redirects=False,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            logger.error("GitHub request timed out")
            raise GitHubConnectionError("Request timed out connecting to GitHub", e)
        except requests.exceptions.ConnectionError as e:
            logger.error(f"GitHub connection error: {e}")
            raise GitHubConnectionError(
                "Unable to connect to GitHub. Check your internet connection.", e
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub request error: {e}")
            raise GitHubError("Request failed", e)

    def _make_raw_request(self, url: str, headers: Dict[str, str]) -> requests.Response:
        """
        GET ``url``, following up to MAX_REDIRECTS redirects.

        Every redirect target must use https. Once a redirect leaves the
        GitHub API host the authorization header is dropped for the rest
        of the chain. If the cap is reached the last response is returned
        as is.

        Raises:
            InsecureRedirectError: If a redirect points at a non-https URL
            GitHubConnectionError: If unable to connect
        """
        headers = dict(headers)
        response = self._send(url, headers)

        for _ in range(MAX_REDIRECTS):
            location = response.headers.get("location")
            if not is_redirect_status_code(response.status_code) or not location:
                return response

            redirect_url = urljoin(url, location)
            parsed = urlparse(redirect_url)
            response.close()
            if parsed.scheme != "https":
                raise InsecureRedirectError(redirect_url)
            if parsed.netloc != GITHUB_API_HOST:
                # Asset storage rejects requests carrying more than one auth mechanism
                headers.pop("authorization", None)

            logger.debug(f"Following {response.status_code} redirect to {parsed.netloc}")
            url = redirect_url
            response = self._send(url, headers)

        logger.warning(f"Stopped following redirects after {MAX_REDIRECTS} hops")
        return response

    def _make_api_call(
        self,
        api_path: str,
        additional_headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        """
        Call the GitHub API and check the status.

        Args:
            api_path: Path below the API base, starting with "/"
            additional_headers: Headers overriding the defaults

        Returns:
            Successful (2xx) response

        Raises:
            GitHubRateLimitedError: If the rate limit is exhausted
            GitHubApiError: For any other non-2xx status
        """
        headers = dict(self._default_headers)
        headers.update(additional_headers or {})
        response = self._make_raw_request(GITHUB_API_BASE + api_path, headers)

        if 200 <= response.status_code < 300:
            return response

        body = response.text
        response.close()
        reset_value = response.headers.get("X-RateLimit-Reset")
        if response.status_code == 403 and reset_value:
            try:
                reset_date = datetime.fromtimestamp(int(reset_value), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError):
                logger.warning(f"Ignoring malformed rate limit reset value: {reset_value}")
            else:
                logger.error(f"GitHub API rate limit exceeded until {reset_date.isoformat()}")
                raise GitHubRateLimitedError(response.status_code, body, reset_date)

        logger.error(f"GitHub API error {response.status_code} for {api_path}")
        raise GitHubApiError(response.status_code, body)

    def get_releases(self) -> List[GitHubRelease]:
        """
        Get the releases of the repository, drafts excluded.

        Raises:
            GitHubError: If the call fails or the response is not a list
        """
        api_path = f"/repos/{self._owner_name}/{self._repository_name}/releases"
        logger.info(f"Fetching releases of {self._owner_name}/{self._repository_name}")

        data = self._make_api_call(api_path).json()
        if not isinstance(data, list):
            raise GitHubError(f"Unexpected response listing releases: {type(data).__name__}")

        releases = [
            GitHubRelease.from_api_response(r)
            for r in data
            if not r.get("draft", False)
        ]
        logger.info(f"Found {len(releases)} releases")
        return releases

    def get_latest_release(
        self,
        version_constraint: VersionConstraint,
        include_prerelease: bool = False
    ) -> Release:
        """
        Get the newest release compatible with ``version_constraint``.

        Args:
            version_constraint: Constraint the release tag must satisfy
            include_prerelease: Whether prereleases may be selected

        Returns:
            The compatible release with the highest version; the most
            recently created one among equal versions

        Raises:
            NoCompatibleReleaseError: If no release is compatible
            UnexpectedAssetCountError: If the chosen release does not have
                exactly one asset
            GitHubError: For registry errors
        """
        candidates: List[Tuple[Version, GitHubRelease]] = []
        for release in self.get_releases():
            if release.prerelease and not include_prerelease:
                continue
            version = release.version
            if version is None or not version_constraint.is_version_compatible(version):
                continue
            candidates.append((version, release))

        if not candidates:
            raise NoCompatibleReleaseError(version_constraint.description)

        candidates.sort(key=cmp_to_key(_compare_releases_descending))
        version, latest = candidates[0]

        if len(latest.assets) != 1:
            raise UnexpectedAssetCountError(latest.name or latest.tag_name, len(latest.assets))

        logger.info(f"Latest compatible release: {latest.tag_name} (version {version})")
        return latest.to_release()

    def stream_binary_content_of_asset(self, asset: ReleaseAsset) -> requests.Response:
        """
        Request the binary content of a release asset.

        The returned response is streamed: read it with ``iter_content``
        and close it when done. ``headers`` carries ``content-length``
        when the server reports one.
        """
        api_path = (
            f"/repos/{self._owner_name}/{self._repository_name}"
            f"/releases/assets/{asset.id}"
        )
        logger.info(f"Downloading asset: {asset.name} ({asset.size} bytes)")
        return self._make_api_call(api_path, {"accept": OCTET_STREAM_ACCEPT})

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "GitHubReleasesClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
