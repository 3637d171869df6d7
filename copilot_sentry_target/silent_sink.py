# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Silent event sink implementation for testing."""

from .config import SinkConfig
from .event_sink import EventSink
from .models import NormalizedEvent


class SilentEventSink(EventSink):
    """Event sink that stores captured events in memory for testing.

    Useful for unit tests that verify what would be sent to Sentry without
    any network traffic.
    """

    def __init__(self):
        """Initialize silent sink."""
        self.captured_exceptions: list[tuple[BaseException, NormalizedEvent]] = []
        self.captured_events: list[NormalizedEvent] = []

    @classmethod
    def from_config(cls, config: SinkConfig) -> "SilentEventSink":
        """Create SilentEventSink from sink configuration.

        Args:
            config: Sink config (ignored, no configuration needed)

        Returns:
            SilentEventSink instance
        """
        return cls()

    def capture_exception(self, error: BaseException, event: NormalizedEvent) -> None:
        self.captured_exceptions.append((error, event))

    def capture_event(self, event: NormalizedEvent) -> None:
        self.captured_events.append(event)

    def get_events(self, level: str | None = None) -> list[NormalizedEvent]:
        """Get captured message events, optionally filtered by level.

        Args:
            level: Optional Sentry level to filter by

        Returns:
            List of captured events
        """
        if level:
            return [e for e in self.captured_events if e.level == level]
        return self.captured_events

    def get_exceptions(self, error_type: str | None = None) -> list[tuple[BaseException, NormalizedEvent]]:
        """Get captured exceptions, optionally filtered by type name.

        Args:
            error_type: Optional exception class name to filter by

        Returns:
            List of (exception, event) pairs
        """
        if error_type:
            return [c for c in self.captured_exceptions if type(c[0]).__name__ == error_type]
        return self.captured_exceptions

    def clear(self) -> None:
        """Clear all captured events and exceptions."""
        self.captured_exceptions.clear()
        self.captured_events.clear()
