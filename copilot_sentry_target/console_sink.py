# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Console-based event sink implementation."""

import logging
import traceback

from .config import SinkConfig
from .event_sink import EventSink
from .models import NormalizedEvent

logger = logging.getLogger(__name__)

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


def _format_scope(event: NormalizedEvent) -> str:
    parts = [f"{k}={v}" for k, v in event.tags.items()]
    parts.extend(f"{k}={v}" for k, v in event.extra.items() if k not in ("context", "traces"))
    if event.user:
        parts.append(f"user={event.user.get('id')}")
    if event.request:
        parts.append(f"url={event.request.get('url')}")
    return ", ".join(parts)


class ConsoleEventSink(EventSink):
    """Event sink that writes events through Python's logging system.

    Useful in development, where no Sentry project is configured. The
    default logger lives in this package, so SentryTarget never re-exports
    what this sink writes.
    """

    def __init__(self, logger_name: str | None = None):
        """Initialize console sink.

        Args:
            logger_name: Optional logger name to use (defaults to module logger)
        """
        self.logger = logging.getLogger(logger_name) if logger_name else logger

    @classmethod
    def from_config(cls, config: SinkConfig) -> "ConsoleEventSink":
        """Create ConsoleEventSink from sink configuration.

        Args:
            config: Sink config with optional logger_name

        Returns:
            ConsoleEventSink instance
        """
        return cls(logger_name=config.logger_name)

    def capture_exception(self, error: BaseException, event: NormalizedEvent) -> None:
        """Log an exception with its scope data.

        Args:
            error: The exception to report
            event: Event carrying level, tags, extra, request and user
        """
        stack_trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        log_message = f"Exception captured: {type(error).__name__}: {error} | {_format_scope(event)}"

        self.logger.log(_LEVEL_MAP.get(event.level, logging.ERROR), log_message)
        self.logger.debug(f"Stack trace:\n{stack_trace}")

    def capture_event(self, event: NormalizedEvent) -> None:
        """Log a message event.

        Args:
            event: The event to report
        """
        log_message = f"{event.message or ''} | {_format_scope(event)}"
        self.logger.log(_LEVEL_MAP.get(event.level, logging.ERROR), log_message)
