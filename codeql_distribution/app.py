"""Composition root for the CodeQL distribution manager.

Wires settings, credentials, persistent state, notifications and logging
into a ready-to-use DistributionManager.
"""

import logging
from pathlib import Path
from typing import Optional

from codeql_distribution.config.credentials import CredentialManager
from codeql_distribution.config.paths import (
    get_global_storage_dir,
    get_log_file_path,
    get_state_path,
)
from codeql_distribution.config.settings import SettingsManager
from codeql_distribution.distribution.manager import DistributionManager
from codeql_distribution.distribution.notifications import Notifier
from codeql_distribution.state.store import JsonStateStore
from codeql_distribution.updater.version import (
    DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT,
    VersionConstraint,
)
from codeql_distribution.utils.logging import setup_logging


def create_distribution_manager(
    global_storage_dir: Optional[Path] = None,
    settings_path: Optional[Path] = None,
    state_path: Optional[Path] = None,
    version_constraint: VersionConstraint = DEFAULT_DISTRIBUTION_VERSION_CONSTRAINT,
    notifier: Optional[Notifier] = None,
    log_file: Optional[Path] = None,
    log_level: int = logging.INFO,
    configure_logging: bool = True,
) -> DistributionManager:
    """
    Build a DistributionManager using the platform default locations.

    Args:
        global_storage_dir: Root for managed installations
        settings_path: Settings JSON file
        state_path: Persistent state JSON file
        version_constraint: Versions the host can work with
        notifier: Sink for user-facing messages (defaults to logging)
        log_file: Log file (defaults to the app log directory)
        log_level: Logging level
        configure_logging: Set up package logging handlers

    Returns:
        Configured DistributionManager
    """
    if configure_logging:
        logger = setup_logging(level=log_level, log_file=log_file or get_log_file_path())
        logger.info("Distribution manager starting")

    settings = SettingsManager(
        config_path=settings_path,
        credential_manager=CredentialManager(),
    )
    state = JsonStateStore(state_path or get_state_path())

    return DistributionManager(
        settings=settings,
        state=state,
        global_storage_path=global_storage_dir or get_global_storage_dir(),
        version_constraint=version_constraint,
        notifier=notifier,
    )
