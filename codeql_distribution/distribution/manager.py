"""Management of CodeQL CLI binaries.

DistributionManager answers "which launcher should the host run?" and
"is there a newer managed release?", and installs managed releases.
Sources are tried in order: the custom path setting, the managed
installation, then PATH.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Callable, Mapping, Optional

from codeql_distribution.config.settings import DistributionConfig, SettingsManager
from codeql_distribution.distribution.cli_version import get_codeql_cli_version
from codeql_distribution.distribution.launcher import (
    codeql_launcher_name,
    deprecated_codeql_launcher_name,
    deprecated_launcher_message,
    get_executable_from_directory,
)
from codeql_distribution.distribution.notifications import Notifier
from codeql_distribution.distribution.results import (
    AlreadyCheckedRecently,
    AlreadyUpToDate,
    CompatibleDistribution,
    DistributionUpdateCheckResult,
    FindDistributionResult,
    IncompatibleDistribution,
    InvalidLocation,
    NoDistribution,
    UnknownCompatibilityDistribution,
    UpdateAvailable,
)
from codeql_distribution.state.installed_release import InstalledReleaseStore
from codeql_distribution.state.rate_limiter import InvocationRateLimiter, RateLimited
from codeql_distribution.state.store import StateStore
from codeql_distribution.updater.exceptions import ConfiguredPathNotFoundError
from codeql_distribution.updater.github_client import GitHubReleasesClient, Release
from codeql_distribution.updater.installer import (
    ManagedDistributionInstaller,
    ProgressCallback,
)
from codeql_distribution.updater.version import (
    DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT,
    Version,
    VersionConstraint,
)
from codeql_distribution.utils.threading import TaskResult, ThreadedTask

logger = logging.getLogger("codeql_distribution.manager")


UPDATE_CHECK_IDENTIFIER = "extensionSpecificDistributionUpdateCheck"


class DistributionManager:
    """Finds, checks and installs CodeQL CLI distributions."""

    def __init__(
        self,
        settings: SettingsManager,
        state: StateStore,
        global_storage_path: Path,
        version_constraint: VersionConstraint = DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT,
        notifier: Optional[Notifier] = None,
        version_probe: Callable[[Path], Optional[Version]] = get_codeql_cli_version,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ):
        """
        Args:
            settings: Source of the distribution configuration
            state: Persistent key-value store
            global_storage_path: Root directory for managed installations
            version_constraint: Versions the host can work with
            notifier: Sink for user-facing errors and warnings
            version_probe: Asks a launcher for its version
            environ: Process environment (defaults to ``os.environ``)
            platform: Overrides ``sys.platform`` for launcher names
        """
        self._settings = settings
        self._version_constraint = version_constraint
        self._notifier = notifier or Notifier()
        self._version_probe = version_probe
        self._environ = environ if environ is not None else os.environ
        self._platform = platform or sys.platform
        self._warned_deprecated_launcher = False

        self._installed = InstalledReleaseStore(state, global_storage_path)
        self._installer = ManagedDistributionInstaller(
            self._installed, self._create_releases_client
        )
        self._update_check_rate_limiter: InvocationRateLimiter[DistributionUpdateCheckResult] = (
            InvocationRateLimiter(
                state, UPDATE_CHECK_IDENTIFIER, self._check_for_updates_to_distribution
            )
        )

    @property
    def config(self) -> DistributionConfig:
        return self._settings.settings

    @property
    def installed(self) -> InstalledReleaseStore:
        return self._installed

    @property
    def version_constraint(self) -> VersionConstraint:
        return self._version_constraint

    def on_did_change_distribution(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Run ``listener`` whenever the distribution settings change."""
        return self._settings.on_did_change_distribution_configuration(listener)

    def _create_releases_client(self) -> GitHubReleasesClient:
        config = self.config
        for warning in config.validation_warnings():
            self._notifier.show_warning(warning)
        return GitHubReleasesClient(
            config.effective_owner_name,
            config.effective_repository_name,
            config.effective_personal_access_token,
        )

    def _warn_deprecated_launcher(self) -> None:
        if self._warned_deprecated_launcher:
            return
        self._warned_deprecated_launcher = True
        self._notifier.show_warning(deprecated_launcher_message(self._platform))

    # Resolution

    def get_distribution(self) -> FindDistributionResult:
        """Look up a launcher and classify its version."""
        codeql_path = self.get_codeql_path_without_version_check()
        if codeql_path is None:
            return NoDistribution()

        version = self._version_probe(codeql_path)
        if version is None:
            return UnknownCompatibilityDistribution(codeql_path=codeql_path)
        if not self._version_constraint.is_version_compatible(version):
            logger.warning(
                f"CodeQL CLI at {codeql_path} has version {version}, which does not "
                f"satisfy {self._version_constraint.description}"
            )
            return IncompatibleDistribution(codeql_path=codeql_path, version=version)
        return CompatibleDistribution(codeql_path=codeql_path, version=version)

    def has_distribution(self) -> bool:
        return not isinstance(self.get_distribution(), NoDistribution)

    def get_codeql_path_without_version_check(self) -> Optional[Path]:
        """
        Path to a possibly-compatible launcher, or None.

        Checks the custom path setting, then the managed installation,
        then PATH.
        """
        custom_path = self.config.custom_codeql_path
        if custom_path:
            try:
                return self._check_custom_codeql_path(custom_path)
            except ConfiguredPathNotFoundError as e:
                self._notifier.show_error(str(e))
                return None

        managed_path = self.get_extension_managed_codeql_path()
        if managed_path is not None:
            return managed_path

        search_path = self._environ.get("PATH")
        if search_path:
            for search_directory in search_path.split(os.pathsep):
                if not search_directory:
                    continue
                launcher_path = get_executable_from_directory(
                    search_directory,
                    on_deprecated_launcher=self._warn_deprecated_launcher,
                    platform=self._platform,
                )
                if launcher_path is not None:
                    return launcher_path
            logger.info("Could not find CodeQL on path.")

        return None

    def _check_custom_codeql_path(self, custom_path: str) -> Path:
        path = Path(custom_path)
        if not path.exists():
            raise ConfiguredPathNotFoundError(custom_path)

        deprecated_name = deprecated_codeql_launcher_name(self._platform)
        if deprecated_name and custom_path.endswith(deprecated_name):
            if (path.parent / codeql_launcher_name(self._platform)).exists():
                self._warn_deprecated_launcher()
        return path

    def get_extension_managed_codeql_path(self) -> Optional[Path]:
        """
        Launcher of the managed installation, or None.

        A recorded installation whose launcher is missing is treated as
        corrupted and removed.
        """
        if self._installed.get_installed_release() is None:
            return None

        launcher_path = get_executable_from_directory(
            self._installed.get_distribution_root_path(),
            on_deprecated_launcher=self._warn_deprecated_launcher,
            warn_when_not_found=True,
            platform=self._platform,
        )
        if launcher_path is not None:
            return launcher_path

        try:
            self._installer.remove_distribution()
        except OSError as e:
            logger.warning(
                f"Tried to remove corrupted CodeQL CLI at "
                f"{self._installed.get_distribution_storage_path()} but encountered an error: {e}."
            )
        return None

    # Updates

    def get_latest_release(self) -> Release:
        """
        Newest compatible release with exactly one asset.

        Raises:
            NoCompatibleReleaseError: If no release is compatible
            UnexpectedAssetCountError: If the release has zero or several assets
            GitHubError: For registry errors
        """
        with self._create_releases_client() as client:
            return client.get_latest_release(
                self._version_constraint, self.config.include_prerelease
            )

    def _check_for_updates_to_distribution(self) -> DistributionUpdateCheckResult:
        codeql_path = self.get_extension_managed_codeql_path()
        installed_release = self._installed.get_installed_release()
        latest_release = self.get_latest_release()

        if (
            installed_release is not None
            and codeql_path is not None
            and latest_release.id == installed_release.id
        ):
            return AlreadyUpToDate()
        return UpdateAvailable(updated_release=latest_release)

    def check_for_updates_to_extension_managed_distribution(
        self,
        min_seconds_since_last_update_check: float
    ) -> DistributionUpdateCheckResult:
        """
        Check for a newer managed release, at most once per interval.

        If nothing has been installed yet, the latest release is reported
        as an available update.

        Raises:
            GitHubError: If the registry call fails
        """
        codeql_path = self.get_codeql_path_without_version_check()
        managed_path = self.get_extension_managed_codeql_path()
        if codeql_path is not None and codeql_path != managed_path:
            # A distribution is present but it isn't managed here
            return InvalidLocation()

        result = self._update_check_rate_limiter.invoke_function_if_interval_elapsed(
            min_seconds_since_last_update_check
        )
        if isinstance(result, RateLimited):
            return AlreadyCheckedRecently()
        return result.result

    def install_extension_managed_distribution_release(
        self,
        release: Release,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Install ``release`` as the managed distribution.

        Returns:
            Storage directory of the new installation

        Raises:
            DistributionError: If the download or extraction fails
        """
        return self._installer.install(release, progress_callback)

    # Background variants

    def install_in_background(
        self,
        release: Release,
        progress_callback: Optional[ProgressCallback] = None,
        on_complete: Optional[Callable[[TaskResult[Path]], None]] = None
    ) -> ThreadedTask[Path]:
        """Start an install on a worker thread. There is no cancellation."""
        return ThreadedTask(
            self.install_extension_managed_distribution_release,
            args=(release, progress_callback),
            on_complete=on_complete,
        ).start()

    def check_for_updates_in_background(
        self,
        min_seconds_since_last_update_check: float,
        on_complete: Optional[Callable[[TaskResult[DistributionUpdateCheckResult]], None]] = None
    ) -> ThreadedTask[DistributionUpdateCheckResult]:
        """Start an update check on a worker thread."""
        return ThreadedTask(
            self.check_for_updates_to_extension_managed_distribution,
            args=(min_seconds_since_last_update_check,),
            on_complete=on_complete,
        ).start()
