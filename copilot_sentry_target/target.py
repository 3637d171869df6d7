# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Logging handler that exports buffered log records to Sentry."""

import logging
from collections.abc import Iterable
from logging.handlers import BufferingHandler

from .config import TargetConfig
from .context_message import DEFAULT_LOG_VARS, DEFAULT_MASK_VARS, ContextMessageProvider
from .event_sink import EventSink
from .factory import create_sink
from .http_context import (
    RequestContext,
    RequestSnapshotProvider,
    current_request_context,
    is_http_request,
    request_context,
)
from .levels import from_stdlib_level, parse_levels
from .models import RawLogRecord
from .normalizer import (
    ContextMessageCallable,
    ExtraCallback,
    HttpSnapshotCallable,
    LogRecordNormalizer,
    UserSnapshotCallable,
)
from .user_context import current_user_snapshot

# Records from these loggers would feed back into the target
_INTERNAL_CATEGORIES = ("sentry_sdk", "sentry_sdk.*", "copilot_sentry_target", "copilot_sentry_target.*")


def category_matches(category: str, pattern: str) -> bool:
    """Match a category against a pattern; a trailing "*" matches a prefix."""
    if pattern.endswith("*"):
        return category.startswith(pattern[:-1])
    return category == pattern


class SentryTarget(BufferingHandler):
    """Buffer log records and export them to an event sink.

    Records are converted when they are emitted, so the call-site trace and
    the request being served are those of the logging call. Each flush
    normalizes every buffered record and dispatches it to the sink once.

    Example:
        >>> sink = SentryEventSink(dsn="https://...@sentry.io/...")
        >>> logging.getLogger().addHandler(SentryTarget(sink, levels=["error", "warning"]))
    """

    def __init__(
        self,
        sink: EventSink,
        levels: Iterable[str] | None = None,
        categories: Iterable[str] | None = None,
        except_categories: Iterable[str] | None = None,
        context: bool = True,
        log_vars: Iterable[str] = DEFAULT_LOG_VARS,
        mask_vars: Iterable[str] = DEFAULT_MASK_VARS,
        extra_callback: ExtraCallback | None = None,
        capacity: int = 1000,
        trace_level: int = 0,
        ignore_server_port: bool = False,
        trust_x_forwarded_proto: bool = False,
        http_snapshot_provider: HttpSnapshotCallable | None = None,
        user_snapshot_provider: UserSnapshotCallable | None = current_user_snapshot,
        context_message_provider: ContextMessageCallable | None = None,
    ):
        """Initialize the target.

        Args:
            sink: Where normalized events are sent
            levels: Level names to export (error, warning, info, trace,
                profile); all levels when empty
            categories: Logger name patterns to export; all when empty
            except_categories: Logger name patterns never exported
            context: Attach the context dump to message events
            log_vars: Variables included in the context dump
            mask_vars: Key patterns masked in the context dump
            extra_callback: Called as extra_callback(payload, extra); its
                result replaces the event extra
            capacity: Number of buffered records that triggers an export
            trace_level: Call-site frames captured per record
            ignore_server_port: Never append SERVER_PORT to request URLs
            trust_x_forwarded_proto: Honour X-Forwarded-Proto for request URLs
            http_snapshot_provider: Overrides the request snapshot provider
            user_snapshot_provider: Overrides the user snapshot provider;
                None disables user data
            context_message_provider: Overrides the context dump provider
        """
        super().__init__(capacity)
        self.sink = sink
        self.levels = parse_levels(levels)
        self.categories = list(categories or [])
        self.except_categories = list(except_categories or [])
        self.trace_level = trace_level
        self.normalizer = LogRecordNormalizer(
            context=context,
            http_snapshot_provider=http_snapshot_provider
            or RequestSnapshotProvider(ignore_server_port, trust_x_forwarded_proto),
            user_snapshot_provider=user_snapshot_provider,
            context_message_provider=context_message_provider
            or ContextMessageProvider(log_vars, mask_vars),
            extra_callback=extra_callback,
        )
        self.buffer: list[tuple[RawLogRecord, RequestContext | None]] = []  # type: ignore[assignment]

    @classmethod
    def from_config(
        cls,
        config: TargetConfig,
        extra_callback: ExtraCallback | None = None,
    ) -> "SentryTarget":
        """Create a SentryTarget from configuration.

        Args:
            config: Target configuration, including the sink
            extra_callback: Optional extra enrichment callback

        Returns:
            Configured SentryTarget instance

        Raises:
            ValueError: If the configuration is invalid
        """
        config.validate()
        return cls(
            sink=create_sink(config.sink),
            levels=config.levels,
            categories=config.categories,
            except_categories=config.except_categories,
            context=config.context,
            log_vars=config.log_vars,
            mask_vars=config.mask_vars,
            extra_callback=extra_callback,
            capacity=config.capacity,
            trace_level=config.trace_level,
            ignore_server_port=config.ignore_server_port,
            trust_x_forwarded_proto=config.trust_x_forwarded_proto,
        )

    def accepts(self, record: logging.LogRecord) -> bool:
        """Return True if the record passes the level and category rules."""
        category = record.name
        if any(category_matches(category, p) for p in _INTERNAL_CATEGORIES):
            return False

        if self.levels and from_stdlib_level(record.levelno) not in self.levels:
            return False

        if self.categories and not any(category_matches(category, p) for p in self.categories):
            return False

        return not any(category_matches(category, p) for p in self.except_categories)

    def filter(self, record: logging.LogRecord):  # type: ignore[override]
        if not self.accepts(record):
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        """Buffer a record, exporting the buffer when it is full."""
        try:
            raw = RawLogRecord.from_logging_record(record, self.trace_level)
            self.buffer.append((raw, current_request_context()))
            if self.shouldFlush(record):
                self.flush()
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Export and clear the buffer.

        Every buffered record is exported once. The first exception raised
        by the extra callback is re-raised after the rest of the batch has
        been exported.
        """
        self.acquire()
        try:
            records, self.buffer = self.buffer, []
        finally:
            self.release()
        self.export(records)

    def export(self, records: Iterable[tuple[RawLogRecord, RequestContext | None]]) -> None:
        """Normalize and dispatch records, each within its request context.

        A record whose normalization fails is skipped; the first such error
        is raised once the remaining records have been dispatched.
        """
        first_error: Exception | None = None
        for raw, context in records:
            try:
                with request_context(context):
                    event = self.normalizer.normalize(raw, is_http_request())
            except Exception as e:
                if first_error is None:
                    first_error = e
                continue
            self.normalizer.dispatch(event, self.sink)
        if first_error is not None:
            raise first_error


def create_sentry_target(
    config: TargetConfig | None = None,
    extra_callback: ExtraCallback | None = None,
) -> SentryTarget:
    """Create a SentryTarget from configuration or environment variables.

    Args:
        config: Target configuration; read from the environment when None
        extra_callback: Optional extra enrichment callback

    Returns:
        SentryTarget instance

    Raises:
        ValueError: If the configuration is invalid
    """
    if config is None:
        config = TargetConfig.from_env()
    return SentryTarget.from_config(config, extra_callback=extra_callback)
