"""Record of the extension-managed installation.

Tracks which release is installed and the rotating folder index that
names the storage directory of each install.
"""

import logging
from pathlib import Path
from typing import Optional

from codeql_distribution.state.store import StateStore
from codeql_distribution.updater.github_client import Release

logger = logging.getLogger("codeql_distribution.installed_release")


DISTRIBUTION_FOLDER_BASE_NAME = "distribution"
DISTRIBUTION_FOLDER_INDEX_KEY = "distributionFolderIndex"
INSTALLED_RELEASE_KEY = "distributionRelease"
CODEQL_EXTRACTED_FOLDER_NAME = "codeql"


class InstalledReleaseStore:
    """Reads and writes the managed-installation state."""

    def __init__(self, state: StateStore, global_storage_path: Path):
        """
        Args:
            state: Persistent key-value store
            global_storage_path: Root directory owned by the host
        """
        self._state = state
        self._global_storage_path = Path(global_storage_path)

    @property
    def global_storage_path(self) -> Path:
        return self._global_storage_path

    def get_installed_release(self) -> Optional[Release]:
        """The last successfully installed release, or None."""
        data = self._state.get(INSTALLED_RELEASE_KEY)
        if data is None:
            return None
        try:
            return Release.from_dict(data)
        except (KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed installed release record: {e}")
            return None

    def store_installed_release(self, release: Optional[Release]) -> None:
        """Record ``release`` as installed; None clears the record."""
        self._state.update(
            INSTALLED_RELEASE_KEY,
            release.to_dict() if release is not None else None,
        )

    def get_folder_index(self) -> int:
        return int(self._state.get(DISTRIBUTION_FOLDER_INDEX_KEY, 0))

    def bump_folder_index(self) -> int:
        """Move to a storage folder that has never been used; returns the new index."""
        index = self._state.increment(DISTRIBUTION_FOLDER_INDEX_KEY, 0)
        logger.debug(f"Distribution folder index is now {index}")
        return index

    def get_distribution_storage_path(self) -> Path:
        """Storage directory for the current index.

        Index 0 maps to the unsuffixed ``distribution`` folder so that
        installs made before rotation existed are still found.
        """
        index = self.get_folder_index()
        suffix = str(index) if index else ""
        return self._global_storage_path / f"{DISTRIBUTION_FOLDER_BASE_NAME}{suffix}"

    def get_distribution_root_path(self) -> Path:
        """Directory the launcher is extracted into."""
        return self.get_distribution_storage_path() / CODEQL_EXTRACTED_FOLDER_NAME
