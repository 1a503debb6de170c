"""Path discovery for the CodeQL distribution manager.

Defines the application data directories: settings, persistent state,
logs and the global storage root holding managed installations.
"""

import os
import sys
from pathlib import Path


# Application name for config directories
APP_NAME = "CodeQLDistributionManager"


def get_app_data_dir() -> Path:
    """
    Get the application data directory.

    Returns:
        Path to app data directory (created if not exists)

    Platform-specific locations:
        - Windows: %APPDATA%/CodeQLDistributionManager
        - Linux: ~/.config/CodeQLDistributionManager
        - macOS: ~/Library/Application Support/CodeQLDistributionManager
    """
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    app_dir = base / APP_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_settings_path() -> Path:
    """Path to the settings JSON file."""
    return get_app_data_dir() / "settings.json"


def get_global_storage_dir() -> Path:
    """
    Get the root directory for managed CLI installations.

    Returns:
        Path to global storage directory (created if not exists)
    """
    storage_dir = get_app_data_dir() / "globalStorage"
    storage_dir.mkdir(parents=True, exist_ok=True)
    return storage_dir


def get_state_path() -> Path:
    """Path to the persistent state JSON file."""
    return get_app_data_dir() / "state.json"


def get_log_dir() -> Path:
    """
    Get the directory for log files.

    Returns:
        Path to logs directory (created if not exists)
    """
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_file_path() -> Path:
    """Path to the main log file."""
    return get_log_dir() / "distribution.log"
