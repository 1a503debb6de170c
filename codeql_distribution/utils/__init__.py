"""Utility module for the CodeQL distribution manager.

This module provides cross-cutting utilities:
- Logging: Configured logging with secret redaction
- Validators: Validation of configuration values
- Threading: Background task helper for blocking operations
"""
