"""Installer for the extension-managed CodeQL CLI.

Downloads a release archive, extracts it into a fresh rotated storage
folder and records the release only once extraction has succeeded.
"""

import logging
import os
import shutil
import stat
import tempfile
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

import requests

from codeql_distribution.updater.exceptions import (
    ExtractionError,
    GitHubConnectionError,
    UnexpectedAssetCountError,
)
from codeql_distribution.updater.github_client import GitHubReleasesClient, Release

if TYPE_CHECKING:
    from codeql_distribution.state.installed_release import InstalledReleaseStore

logger = logging.getLogger("codeql_distribution.installer")


ARCHIVE_FILE_NAME = "distributionDownload.zip"
TEMP_DIR_PREFIX = "codeql-distribution"
DOWNLOAD_CHUNK_SIZE = 64 * 1024
EXTRACT_CONCURRENCY = 4


@dataclass
class ProgressUpdate:
    """Progress information for a download operation."""
    step: int
    max_step: int
    message: str

    @property
    def percentage(self) -> float:
        """Download progress as percentage."""
        if self.max_step == 0:
            return 0.0
        return (self.step / self.max_step) * 100


# Progress callback type
ProgressCallback = Callable[[ProgressUpdate], None]


def bytes_to_display_mb(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def _extract_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    """Write one file entry and restore its permission bits."""
    target.parent.mkdir(parents=True, exist_ok=True)
    with archive.open(info) as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst)
    mode = info.external_attr >> 16
    if mode:
        os.chmod(target, stat.S_IMODE(mode))


def extract_zip_archive(
    archive_path: Path,
    out_path: Path,
    max_workers: int = EXTRACT_CONCURRENCY
) -> List[Path]:
    """
    Extract a ZIP archive, restoring POSIX permission bits.

    Entries whose resolved destination falls outside ``out_path`` are
    skipped. File entries are written concurrently, each to its own path.

    Args:
        archive_path: ZIP file to extract
        out_path: Destination directory (created if missing)
        max_workers: Number of entries written at the same time

    Returns:
        Paths of the extracted files

    Raises:
        ExtractionError: If the archive is unreadable or writing fails
    """
    out_root = Path(out_path).resolve()
    try:
        out_root.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path) as archive:
            directories: List[Tuple[zipfile.ZipInfo, Path]] = []
            files: List[Tuple[zipfile.ZipInfo, Path]] = []
            for info in archive.infolist():
                target = (out_root / info.filename).resolve()
                if target != out_root and out_root not in target.parents:
                    logger.warning(f"Skipping archive entry outside target directory: {info.filename}")
                    continue
                if info.is_dir():
                    directories.append((info, target))
                else:
                    files.append((info, target))

            for _, target in directories:
                target.mkdir(parents=True, exist_ok=True)

            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [
                    executor.submit(_extract_member, archive, info, target)
                    for info, target in files
                ]
                for future in futures:
                    future.result()

            # Deepest first, so a read-only parent does not block its children
            for info, target in sorted(directories, key=lambda d: len(d[1].parts), reverse=True):
                mode = info.external_attr >> 16
                if mode:
                    os.chmod(target, stat.S_IMODE(mode))

    except zipfile.BadZipFile as e:
        raise ExtractionError(str(out_path), e)
    except OSError as e:
        raise ExtractionError(str(out_path), e)

    logger.debug(f"Extracted {len(files)} files to {out_root}")
    return [target for _, target in files]


class ManagedDistributionInstaller:
    """Downloads and installs releases into rotating storage folders."""

    def __init__(
        self,
        installed: "InstalledReleaseStore",
        client_factory: Callable[[], GitHubReleasesClient]
    ):
        """
        Initialize the installer.

        Args:
            installed: Record of the managed installation
            client_factory: Creates a registry client for the current configuration
        """
        self._installed = installed
        self._client_factory = client_factory

    def remove_distribution(self) -> None:
        """
        Remove the managed installation.

        The record is cleared before anything is deleted. Must not be
        called while the installed launcher is in use, as deletion may fail.
        """
        self._installed.store_installed_release(None)
        storage_path = self._installed.get_distribution_storage_path()
        if storage_path.exists():
            logger.info(f"Removing CodeQL CLI at {storage_path}")
            shutil.rmtree(storage_path)

    def _write_archive(
        self,
        response: requests.Response,
        archive_path: Path,
        progress_callback: Optional[ProgressCallback]
    ) -> int:
        """Stream the response body into ``archive_path``; returns bytes written."""
        total: Optional[int] = None
        content_length = response.headers.get("content-length")
        if content_length is not None:
            try:
                total = int(content_length)
            except ValueError:
                logger.warning(f"Ignoring malformed content-length: {content_length}")

        downloaded = 0

        def update_progress() -> None:
            if progress_callback and total is not None:
                progress_callback(ProgressUpdate(
                    step=downloaded,
                    max_step=total,
                    message=(
                        f"Downloading CodeQL CLI… [{bytes_to_display_mb(downloaded)} "
                        f"of {bytes_to_display_mb(total)}]"
                    ),
                ))

        # Show progress straight away rather than waiting for the first chunk
        update_progress()

        try:
            with open(archive_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    update_progress()
                f.flush()
                os.fsync(f.fileno())
        except requests.exceptions.RequestException as e:
            raise GitHubConnectionError("Download failed", e)
        except OSError as e:
            raise ExtractionError(str(archive_path), e)

        logger.info(f"Downloaded {downloaded} bytes to {archive_path}")
        return downloaded

    def install(
        self,
        release: Release,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Install ``release`` as the managed distribution.

        Args:
            release: Release with exactly one asset (a ZIP archive)
            progress_callback: Optional callback for download progress

        Returns:
            Storage directory the release was extracted into

        Raises:
            UnexpectedAssetCountError: If the release does not have one asset
            GitHubError: If the download fails
            ExtractionError: If writing the archive or its contents fails
        """
        if len(release.assets) != 1:
            raise UnexpectedAssetCountError(release.name, len(release.assets))

        try:
            self.remove_distribution()
        except OSError as e:
            logger.warning(
                f"Tried to clean up old version of CLI at "
                f"{self._installed.get_distribution_storage_path()} but encountered an error: {e}"
            )

        client = self._client_factory()
        try:
            try:
                tmp_directory = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
            except OSError as e:
                raise ExtractionError(tempfile.gettempdir(), e)

            try:
                response = client.stream_binary_content_of_asset(release.assets[0])
                try:
                    archive_path = tmp_directory / ARCHIVE_FILE_NAME
                    self._write_archive(response, archive_path, progress_callback)

                    # A fresh folder, so a launcher still running from the old one is untouched
                    self._installed.bump_folder_index()
                    storage_path = self._installed.get_distribution_storage_path()

                    logger.info(f"Extracting CodeQL CLI to {storage_path}")
                    extract_zip_archive(archive_path, storage_path)
                finally:
                    response.close()
            finally:
                try:
                    shutil.rmtree(tmp_directory)
                except OSError as e:
                    logger.warning(f"Failed to remove temporary directory {tmp_directory}: {e}")
        finally:
            client.close()

        self._installed.store_installed_release(release)
        logger.info(f"Installed CodeQL CLI release {release.name} to {storage_path}")
        return storage_path
