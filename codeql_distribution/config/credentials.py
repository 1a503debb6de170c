"""Secure storage for the GitHub personal access token.

Uses the system keyring (Windows Credential Manager, macOS Keychain,
Linux Secret Service) so the token never lands in the settings file.
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger("codeql_distribution.credentials")


class CredentialManager:
    """Token storage using system keyring."""

    SERVICE_NAME = "codeql-distribution-manager"
    TOKEN_KEY = "github-personal-access-token"

    def save_token(self, token: str) -> bool:
        """
        Save the personal access token securely.

        Args:
            token: Token to save

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            keyring.set_password(self.SERVICE_NAME, self.TOKEN_KEY, token)
            return True
        except KeyringError as e:
            logger.warning(f"Could not save token to keyring: {e}")
            return False

    def get_token(self) -> Optional[str]:
        """
        Retrieve the saved token.

        Returns:
            Token string or None if not found or the keyring is unavailable
        """
        try:
            return keyring.get_password(self.SERVICE_NAME, self.TOKEN_KEY)
        except KeyringError as e:
            logger.warning(f"Could not read token from keyring: {e}")
            return None

    def delete_token(self) -> bool:
        """
        Remove the saved token.

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            keyring.delete_password(self.SERVICE_NAME, self.TOKEN_KEY)
            return True
        except KeyringError:
            return False

    def has_token(self) -> bool:
        """True if a token is saved."""
        return bool(self.get_token())
