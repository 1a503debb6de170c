"""Configuration module for the CodeQL distribution manager.

This module handles distribution settings and credentials:
- SettingsManager: JSON-based settings persistence and change events
- CredentialManager: Token storage via keyring
- Paths: Application data directories
- DistributionConfig: Settings dataclass
"""
