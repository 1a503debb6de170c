"""Launcher file names and lookup."""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger("codeql_distribution.launcher")


def is_windows(platform: Optional[str] = None) -> bool:
    return (platform or sys.platform) == "win32"


def codeql_launcher_name(platform: Optional[str] = None) -> str:
    """Name of the launcher executable on this platform."""
    return "codeql.exe" if is_windows(platform) else "codeql"


def deprecated_codeql_launcher_name(platform: Optional[str] = None) -> Optional[str]:
    """Name of the deprecated launcher, or None where there is none."""
    return "codeql.cmd" if is_windows(platform) else None


def deprecated_launcher_message(platform: Optional[str] = None) -> str:
    return (
        f'The "{deprecated_codeql_launcher_name(platform)}" launcher has been deprecated '
        f"and will be removed in a future version. Please use "
        f'"{codeql_launcher_name(platform)}" instead. It is recommended to update to '
        "the latest CodeQL binaries."
    )


def get_executable_from_directory(
    directory: Union[str, Path],
    on_deprecated_launcher: Optional[Callable[[], None]] = None,
    warn_when_not_found: bool = False,
    platform: Optional[str] = None
) -> Optional[Path]:
    """
    Find the launcher in ``directory``.

    The deprecated launcher is accepted when the current one is missing;
    ``on_deprecated_launcher`` is called when that happens.

    Args:
        directory: Directory to look in
        on_deprecated_launcher: Called when only the deprecated launcher exists
        warn_when_not_found: Log a warning if nothing is found
        platform: Overrides ``sys.platform``

    Returns:
        Path to the launcher, or None
    """
    directory = Path(directory)
    expected_launcher_path = directory / codeql_launcher_name(platform)
    if expected_launcher_path.is_file():
        return expected_launcher_path

    deprecated_name = deprecated_codeql_launcher_name(platform)
    if deprecated_name:
        alternate_launcher_path = directory / deprecated_name
        if alternate_launcher_path.is_file():
            if on_deprecated_launcher:
                on_deprecated_launcher()
            return alternate_launcher_path

    if warn_when_not_found:
        logger.warning(
            f"Expected to find a CodeQL CLI executable at {expected_launcher_path} "
            "but one was not found. Will try PATH."
        )
    return None
