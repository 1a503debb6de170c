"""Logging configuration for the CodeQL distribution manager.

Provides centralized logging with secret redaction so that GitHub
personal access tokens are never written to log files.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "codeql_distribution"

# Secret patterns to redact from logs
SECRET_PATTERNS = [
    # Authorization headers in various formats
    (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?(?:token|bearer)\s+)[^\s"\',}]+', re.IGNORECASE),
     r'\1[REDACTED]'),
    # Classic and fine-grained GitHub tokens
    (re.compile(r'\bgh[pousr]_[A-Za-z0-9]{16,}\b'), '[REDACTED]'),
    (re.compile(r'\bgithub_pat_[A-Za-z0-9_]{16,}\b'), '[REDACTED]'),
    # Tokens passed as query parameters
    (re.compile(r'(access_token=)[^&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
    # Pre-signed asset storage URLs
    (re.compile(r'(X-Amz-(?:Signature|Credential|Security-Token)=)[^&\s]+'), r'\1[REDACTED]'),
]


def redact_secrets(message: str) -> str:
    """Replace every known secret shape in ``message`` with a placeholder."""
    for pattern, replacement in SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class SecretRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts credentials from log messages."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record, redacting any secrets."""
        return redact_secrets(super().format(record))


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure package logging with secret redaction.

    Args:
        level: Logging level (default INFO)
        log_file: Optional file path for log output
        console: Whether to output to console (default True)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = SecretRedactingFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (default is the package logger)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
