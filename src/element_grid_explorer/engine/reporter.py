from __future__ import annotations

import logging
from typing import Protocol

from .errors import ExplorerError

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """User-facing error channel.

    The engine reports resolution, validation, type-contract and stream errors here
    instead of raising them. Implementations must be fast and must not raise.
    """

    def report(self, error: ExplorerError) -> None:
        """Show `error` to the user."""


class LoggingReporter(ErrorReporter):
    """Default reporter when nothing user-facing is attached: log only."""

    def report(self, error: ExplorerError) -> None:
        if error.level == "warn":
            logger.warning("%s", error)
        else:
            logger.error("%s", error)
