# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Sentry event sink implementation."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from .config import SinkConfig
from .event_sink import EventSink
from .models import NormalizedEvent

logger = logging.getLogger(__name__)


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _event_processor(event: NormalizedEvent) -> Callable[[dict[str, Any], dict[str, Any]], dict[str, Any]]:
    """Build a processor that stamps request data and log time on an event."""

    def processor(sentry_event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
        sentry_event["timestamp"] = _to_datetime(event.timestamp)
        if event.request is not None:
            sentry_event["request"] = event.request
        return sentry_event

    return processor


class SentryEventSink(EventSink):
    """Event sink that reports to Sentry through sentry-sdk.

    The SDK is initialized on first capture. The SDK's own logging
    integration is disabled unless client_options provide integrations,
    since SentryTarget already forwards log records.

    Example:
        sink = SentryEventSink(dsn="https://...@sentry.io/...")
        target = SentryTarget(sink=sink)
    """

    def __init__(
        self,
        dsn: str | None = None,
        environment: str | None = None,
        client_options: dict[str, Any] | None = None,
    ):
        """Initialize Sentry sink.

        Args:
            dsn: Sentry DSN (Data Source Name) for the project
            environment: Environment name (production, staging, development)
            client_options: Extra keyword arguments for sentry_sdk.init
        """
        self.dsn = dsn
        self.environment = environment
        self.client_options = dict(client_options or {})
        self._initialized = False

    @classmethod
    def from_config(cls, config: SinkConfig) -> "SentryEventSink":
        """Create a SentryEventSink from sink configuration.

        Args:
            config: Sink config with dsn, environment and client_options

        Returns:
            Configured SentryEventSink instance
        """
        return cls(dsn=config.dsn, environment=config.environment, client_options=config.client_options)

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        if not self.dsn:
            raise RuntimeError("Sentry sink not initialized with a valid DSN")

        options: dict[str, Any] = {"dsn": self.dsn, **self.client_options}
        if self.environment:
            options.setdefault("environment", self.environment)
        options.setdefault("integrations", [LoggingIntegration(level=None, event_level=None)])

        sentry_sdk.init(**options)
        self._initialized = True
        logger.info(f"Sentry client initialized (environment={options.get('environment')})")

    def capture_exception(self, error: BaseException, event: NormalizedEvent) -> None:
        """Report an exception in an isolated scope built from the event.

        Args:
            error: The exception to report
            event: Event carrying level, tags, extra, request and user
        """
        self._ensure_initialized()

        scope_kwargs: dict[str, Any] = {
            "level": event.level,
            "tags": dict(event.tags),
            "extras": dict(event.extra),
        }
        if event.user is not None:
            scope_kwargs["user"] = event.user

        with sentry_sdk.new_scope() as scope:
            scope.add_event_processor(_event_processor(event))
            sentry_sdk.capture_exception(error, **scope_kwargs)

    def capture_event(self, event: NormalizedEvent) -> None:
        """Report a message event.

        Args:
            event: The event to report
        """
        self._ensure_initialized()

        data = event.to_dict()
        data["timestamp"] = _to_datetime(event.timestamp)
        sentry_sdk.capture_event(data)
