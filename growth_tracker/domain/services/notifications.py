from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    """User-facing confirmation and failure signals."""

    def success(self, message: str, *, description: str | None = None) -> None: ...

    def info(self, message: str, *, description: str | None = None) -> None: ...

    def error(self, message: str, *, description: str | None = None) -> None: ...


class LogNotifier:
    """Notifier that records messages in the structured log."""

    def success(self, message: str, *, description: str | None = None) -> None:
        logger.info("notify_success", message=message, description=description)

    def info(self, message: str, *, description: str | None = None) -> None:
        logger.info("notify_info", message=message, description=description)

    def error(self, message: str, *, description: str | None = None) -> None:
        logger.warning("notify_error", message=message, description=description)
