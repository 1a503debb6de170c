"""User-facing messages.

Hosts with a UI subclass Notifier to show messages to the user; the
default implementation only logs them.
"""

import logging

logger = logging.getLogger("codeql_distribution.notifications")


class Notifier:
    """Sink for messages the user should see."""

    def show_error(self, message: str) -> None:
        logger.error(message)

    def show_warning(self, message: str) -> None:
        logger.warning(message)
