"""Distribution settings management for the CodeQL distribution manager.

Provides DistributionConfig dataclass and SettingsManager for persistence
and change notification.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from codeql_distribution.config.credentials import CredentialManager
from codeql_distribution.config.paths import get_settings_path
from codeql_distribution.updater.github_client import (
    DEFAULT_DISTRIBUTION_OWNER_NAME,
    DEFAULT_DISTRIBUTION_REPOSITORY_NAME,
)
from codeql_distribution.utils.validators import (
    validate_owner_name,
    validate_personal_access_token,
    validate_repository_name,
)

logger = logging.getLogger("codeql_distribution.settings")


@dataclass
class DistributionConfig:
    """Settings that decide where the CodeQL CLI comes from."""

    # Overrides every other source when set
    custom_codeql_path: str = ""

    # Repository holding the CLI releases; blank means the default
    owner_name: str = ""
    repository_name: str = ""

    include_prerelease: bool = False

    # Kept in the keyring, never in the settings file
    personal_access_token: str = field(default="", repr=False)

    @property
    def effective_owner_name(self) -> str:
        """Configured owner name, or the default when blank."""
        return self.owner_name.strip() or DEFAULT_DISTRIBUTION_OWNER_NAME

    @property
    def effective_repository_name(self) -> str:
        """Configured repository name, or the default when blank."""
        return self.repository_name.strip() or DEFAULT_DISTRIBUTION_REPOSITORY_NAME

    @property
    def effective_personal_access_token(self) -> Optional[str]:
        """Token to send, or None when unset or malformed."""
        if not self.personal_access_token:
            return None
        is_valid, _ = validate_personal_access_token(self.personal_access_token)
        if not is_valid:
            return None
        return self.personal_access_token

    def validation_warnings(self) -> List[str]:
        """
        Problems with the configured values, worded for the user.

        Owner and repository names are used as configured even when they
        look wrong. A token that cannot be sent is left out of requests.
        """
        warnings = []
        owner_name = self.owner_name.strip()
        if owner_name:
            is_valid, error = validate_owner_name(owner_name)
            if not is_valid:
                warnings.append(f"{error}. CodeQL CLI releases may not be found.")

        repository_name = self.repository_name.strip()
        if repository_name:
            is_valid, error = validate_repository_name(repository_name)
            if not is_valid:
                warnings.append(f"{error}. CodeQL CLI releases may not be found.")

        if self.personal_access_token:
            is_valid, error = validate_personal_access_token(self.personal_access_token)
            if not is_valid:
                warnings.append(
                    f"The GitHub personal access token was ignored: {error}. "
                    "Requests to GitHub will be unauthenticated."
                )
        return warnings

    def to_dict(self) -> dict:
        """Convert settings to dictionary, leaving out the token."""
        data = asdict(self)
        data.pop("personal_access_token", None)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionConfig":
        """Create settings from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        valid_fields.discard("personal_access_token")
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    def snapshot(self) -> Tuple:
        """Values whose change means the distribution may have changed."""
        return (
            self.custom_codeql_path,
            self.owner_name,
            self.repository_name,
            self.include_prerelease,
            self.personal_access_token,
        )


class SettingsManager:
    """Manages distribution settings persistence."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        credential_manager: Optional[CredentialManager] = None
    ):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to platform standard
            credential_manager: Token storage, defaults to the system keyring
        """
        self._config_path = config_path or get_settings_path()
        self._credentials = credential_manager or CredentialManager()
        self._settings: Optional[DistributionConfig] = None
        self._snapshot: Optional[Tuple] = None
        self._listeners: List[Callable[[], None]] = []

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    @property
    def settings(self) -> DistributionConfig:
        """Current settings, loaded on first access."""
        if self._settings is None:
            self.load()
        return self._settings

    def load(self) -> DistributionConfig:
        """
        Load settings from disk and the token from the keyring.

        Returns:
            DistributionConfig instance (defaults if file not found)
        """
        settings = DistributionConfig()
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                settings = DistributionConfig.from_dict(data)
            except (json.JSONDecodeError, IOError, TypeError, AttributeError) as e:
                logger.warning(f"Invalid settings file {self._config_path}, using defaults: {e}")
                settings = DistributionConfig()

        token = self._credentials.get_token()
        if token:
            settings.personal_access_token = token

        self._settings = settings
        self._snapshot = settings.snapshot()
        return self._settings

    def save(self, settings: DistributionConfig) -> None:
        """
        Persist settings to disk and the token to the keyring.

        Change listeners run if any distribution setting changed.

        Args:
            settings: Settings to save
        """
        self._settings = settings

        # Ensure parent directory exists
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

        if settings.personal_access_token:
            self._credentials.save_token(settings.personal_access_token)
        else:
            self._credentials.delete_token()

        self._notify_if_changed()

    def reset(self) -> DistributionConfig:
        """
        Reset to default settings.

        Returns:
            Default DistributionConfig instance
        """
        self._settings = DistributionConfig()

        # Remove existing file
        if self._config_path.exists():
            self._config_path.unlink()
        self._credentials.delete_token()

        self._notify_if_changed()
        return self._settings

    def update(self, **kwargs) -> DistributionConfig:
        """
        Update specific settings fields.

        Args:
            **kwargs: Field names and new values

        Returns:
            Updated DistributionConfig instance
        """
        settings = self.settings

        for key, value in kwargs.items():
            if hasattr(settings, key):
                setattr(settings, key, value)

        self.save(settings)
        return settings

    def on_did_change_distribution_configuration(
        self,
        listener: Callable[[], None]
    ) -> Callable[[], None]:
        """
        Register ``listener`` to run whenever a distribution setting changes.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def _notify_if_changed(self) -> None:
        snapshot = self._settings.snapshot()
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        logger.info("Distribution configuration changed")
        for listener in list(self._listeners):
            listener()
