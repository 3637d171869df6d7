# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory for event sinks."""

from collections.abc import Callable

from .config import SinkConfig
from .event_sink import EventSink


def _build_sentry(config: SinkConfig) -> EventSink:
    from .sentry_sink import SentryEventSink

    return SentryEventSink.from_config(config)


def _build_console(config: SinkConfig) -> EventSink:
    from .console_sink import ConsoleEventSink

    return ConsoleEventSink.from_config(config)


def _build_silent(config: SinkConfig) -> EventSink:
    from .silent_sink import SilentEventSink

    return SilentEventSink.from_config(config)


_DRIVERS: dict[str, Callable[[SinkConfig], EventSink]] = {
    "sentry": _build_sentry,
    "console": _build_console,
    "silent": _build_silent,
}


def create_sink(config: SinkConfig) -> EventSink:
    """Create an event sink from configuration.

    Args:
        config: Sink configuration.

    Returns:
        EventSink instance.

    Raises:
        ValueError: If config is missing or sink_type is not recognized.
        TypeError: If config is not a SinkConfig.
    """
    if config is None:
        raise ValueError("sink config is required")
    if not isinstance(config, SinkConfig):
        raise TypeError("sink config must be SinkConfig")

    sink_type = str(config.sink_type).lower()
    try:
        factory = _DRIVERS[sink_type]
    except KeyError as exc:
        supported = ", ".join(sorted(_DRIVERS))
        raise ValueError(f"Unknown sink driver: {sink_type}. Supported drivers: {supported}") from exc
    return factory(config)
