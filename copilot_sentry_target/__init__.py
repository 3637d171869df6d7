# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Copilot-for-Consensus Sentry Log Target.

A logging handler that exports buffered log records to Sentry. Each record
(plain text, a mapping, or an exception) is normalized into one Sentry
event carrying level, tags, message/extra, and the request and user of the
HTTP request being served, if any.

Example:
    >>> import logging
    >>> from copilot_sentry_target import SentryTarget, SentryEventSink
    >>>
    >>> target = SentryTarget(
    ...     SentryEventSink(dsn="https://key@sentry.example.com/1"),
    ...     levels=["error", "warning"],
    ... )
    >>> logging.getLogger().addHandler(target)
    >>> logging.getLogger("app.db").error({"msg": "Query failed", "tags": {"table": "users"}})
    >>>
    >>> # In a FastAPI service, expose the request to the target
    >>> from copilot_sentry_target import RequestContextMiddleware
    >>> app.add_middleware(RequestContextMiddleware)
"""

__version__ = "0.1.0"

from .config import SinkConfig, TargetConfig
from .console_sink import ConsoleEventSink
from .event_sink import EventSink
from .factory import create_sink
from .levels import LogLevel, get_level_name
from .middleware import RequestContextMiddleware
from .models import NormalizedEvent, RawLogRecord
from .normalizer import LogRecordNormalizer, dispatch, normalize
from .sentry_sink import SentryEventSink
from .silent_sink import SilentEventSink
from .target import SentryTarget, create_sentry_target

__all__ = [
    # Version
    "__version__",
    # Configuration
    "SinkConfig",
    "TargetConfig",
    # Levels
    "LogLevel",
    "get_level_name",
    # Normalization
    "RawLogRecord",
    "NormalizedEvent",
    "LogRecordNormalizer",
    "normalize",
    "dispatch",
    # Sinks
    "EventSink",
    "SentryEventSink",
    "ConsoleEventSink",
    "SilentEventSink",
    "create_sink",
    # Logging integration
    "SentryTarget",
    "create_sentry_target",
    "RequestContextMiddleware",
]
