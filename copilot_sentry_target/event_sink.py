# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Abstract event sink interface."""

from abc import ABC, abstractmethod

from .models import NormalizedEvent


class EventSink(ABC):
    """Abstract base class for event sinks.

    A sink delivers normalized events to an error tracking backend (e.g.,
    Sentry). Delivery is fire-and-forget from the caller's point of view.
    """

    @abstractmethod
    def capture_exception(self, error: BaseException, event: NormalizedEvent) -> None:
        """Capture an exception with the scope data of an event.

        Args:
            error: The exception to report
            event: Event carrying level, tags, extra, request and user
        """
        pass

    @abstractmethod
    def capture_event(self, event: NormalizedEvent) -> None:
        """Capture a message event.

        Args:
            event: The event to report
        """
        pass
