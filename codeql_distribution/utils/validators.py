"""Input validators for the CodeQL distribution manager.

Provides validation functions for configuration values such as the
GitHub owner/repository names and the custom launcher path.
"""

import re
from pathlib import Path
from typing import Optional, Tuple, Union


# GitHub user/organisation names: alphanumerics and single hyphens, plus the
# underscore that managed-user accounts append before their enterprise shortcode
OWNER_NAME_PATTERN = re.compile(r'^(?!-)[A-Za-z0-9_-]{1,39}(?<!-)$')

# GitHub repository names
REPOSITORY_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{1,100}$')


def validate_owner_name(owner: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a GitHub owner (user or organisation) name.

    Args:
        owner: Owner name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not owner or not owner.strip():
        return False, "Owner name is required"

    owner = owner.strip()

    if OWNER_NAME_PATTERN.match(owner) and "--" not in owner:
        return True, None

    return False, f"Invalid owner name: {owner}"


def validate_repository_name(repository: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a GitHub repository name.

    Args:
        repository: Repository name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not repository or not repository.strip():
        return False, "Repository name is required"

    repository = repository.strip()

    if repository in (".", ".."):
        return False, f"Invalid repository name: {repository}"

    if REPOSITORY_NAME_PATTERN.match(repository):
        return True, None

    return False, f"Invalid repository name: {repository}"


def validate_personal_access_token(token: str) -> Tuple[bool, Optional[str]]:
    """
    Validate the shape of a personal access token.

    The token is sent verbatim in an HTTP header, so it must not contain
    whitespace.

    Args:
        token: Token to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not token:
        return False, "Token is empty"

    if any(c.isspace() for c in token):
        return False, "Token must not contain whitespace"

    return True, None


def validate_custom_path(path: Union[str, Path]) -> Tuple[bool, Optional[str]]:
    """
    Validate a custom CodeQL launcher path.

    Existence is checked at resolution time, not here.

    Args:
        path: Path to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not path or not str(path).strip():
        return False, "Path is required"

    if not Path(str(path).strip()).is_absolute():
        return False, f"Path must be absolute: {path}"

    return True, None
