# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Normalization of raw log records into Sentry events.

A raw record payload may be plain text, a mapping, an exception, or a
mapping with an exception under "msg". Each record becomes exactly one
NormalizedEvent, which is then dispatched to an EventSink.
"""

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from .levels import get_level_name
from .models import NormalizedEvent, RawLogRecord

if TYPE_CHECKING:
    from .event_sink import EventSink

logger = logging.getLogger(__name__)

HttpSnapshotCallable = Callable[[], dict[str, Any] | None]
UserSnapshotCallable = Callable[[], dict[str, Any] | None]
ContextMessageCallable = Callable[[], str]
ExtraCallback = Callable[[Any, dict[str, Any]], dict[str, Any]]


def merge_tags(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, str]:
    """Merge two tag mappings, values from override win.

    Tag values are stringified since Sentry only accepts string tags.
    """
    merged = {_safe_text(key): _safe_text(value) for key, value in base.items()}
    for key, value in override.items():
        merged[_safe_text(key)] = _safe_text(value)
    return merged


def _extract_exception(payload: Any) -> BaseException | None:
    if isinstance(payload, BaseException):
        return payload
    if isinstance(payload, Mapping) and isinstance(payload.get("msg"), BaseException):
        return payload["msg"]
    return None


def _safe_text(value: Any) -> str:
    """Stringify a value, falling back to its repr when __str__ fails."""
    try:
        return str(value)
    except Exception:
        pass
    try:
        return repr(value)
    except Exception:
        return object.__repr__(value)


def _safe_user_snapshot(provider: UserSnapshotCallable) -> dict[str, Any] | None:
    try:
        return provider() or None
    except Exception as e:
        # A missing session must never break logging
        logger.debug(f"User lookup failed, sending event without user: {e}")
        return None


def _safe_http_snapshot(provider: HttpSnapshotCallable) -> dict[str, Any] | None:
    try:
        return provider()
    except Exception as e:
        logger.debug(f"Request snapshot failed, sending event without request: {e}")
        return None


def normalize(
    record: RawLogRecord,
    is_http_context: bool = False,
    http_snapshot_provider: HttpSnapshotCallable | None = None,
    user_snapshot_provider: UserSnapshotCallable | None = None,
    context_message_provider: ContextMessageCallable | None = None,
    extra_callback: ExtraCallback | None = None,
    *,
    include_context: bool = False,
) -> NormalizedEvent:
    """Normalize one raw log record into a Sentry event.

    Args:
        record: The raw log record
        is_http_context: Whether the record was logged while serving a request
        http_snapshot_provider: Returns the current request data; failures
            are swallowed and the event is sent without a request
        user_snapshot_provider: Returns the current user data; failures are
            swallowed and the event is sent without a user
        context_message_provider: Returns the ambient context dump
        extra_callback: Called as extra_callback(payload, extra) and its
            result replaces extra. Exceptions it raises propagate.
        include_context: Whether to attach the context message

    Returns:
        NormalizedEvent for the record
    """
    level = get_level_name(record.level)
    tags: dict[str, str] = {"category": record.category}
    message: str | None = None
    extra: dict[str, Any] = {}
    payload = record.payload

    exception = _extract_exception(payload)
    if exception is not None:
        if isinstance(payload, Mapping):
            rest = {k: v for k, v in payload.items() if k != "msg"}
            if isinstance(rest.get("tags"), Mapping):
                tags = merge_tags(tags, rest.pop("tags"))
            extra.update(rest)
        if record.trace:
            extra["traces"] = "\n".join(record.trace)
    else:
        if isinstance(payload, Mapping):
            rest = dict(payload)
            if rest.get("msg") is not None:
                message = _safe_text(rest.pop("msg"))
            else:
                rest.pop("msg", None)
            if isinstance(rest.get("tags"), Mapping):
                tags = merge_tags(tags, rest.pop("tags"))
            extra.update(rest)
        else:
            message = payload if isinstance(payload, str) else _safe_text(payload)

        if include_context and context_message_provider is not None:
            extra["context"] = context_message_provider()
        extra["traces"] = "\n".join(record.trace)

    request = None
    if is_http_context and http_snapshot_provider is not None:
        request = _safe_http_snapshot(http_snapshot_provider)

    user = None
    if user_snapshot_provider is not None:
        user = _safe_user_snapshot(user_snapshot_provider)

    if extra_callback is not None:
        extra = extra_callback(record.payload, extra)

    return NormalizedEvent(
        level=level,
        timestamp=record.timestamp,
        tags=tags,
        extra=extra,
        message=message,
        exception=exception,
        request=request,
        user=user,
    )


def dispatch(event: NormalizedEvent, sink: "EventSink") -> None:
    """Hand an event to the sink.

    Exception events go through capture_exception, everything else through
    capture_event. Sink errors are not inspected.
    """
    if event.exception is not None:
        sink.capture_exception(event.exception, event)
    else:
        sink.capture_event(event)


class LogRecordNormalizer:
    """Normalizer bound to a fixed set of providers.

    Attributes:
        context: Whether to attach the context message to message events
        http_snapshot_provider: Returns the current request data
        user_snapshot_provider: Returns the current user data
        context_message_provider: Returns the ambient context dump
        extra_callback: Caller-supplied enrichment of extra
    """

    def __init__(
        self,
        context: bool = True,
        http_snapshot_provider: HttpSnapshotCallable | None = None,
        user_snapshot_provider: UserSnapshotCallable | None = None,
        context_message_provider: ContextMessageCallable | None = None,
        extra_callback: ExtraCallback | None = None,
    ):
        self.context = context
        self.http_snapshot_provider = http_snapshot_provider
        self.user_snapshot_provider = user_snapshot_provider
        self.context_message_provider = context_message_provider
        self.extra_callback = extra_callback

    def normalize(self, record: RawLogRecord, is_http_context: bool = False) -> NormalizedEvent:
        return normalize(
            record,
            is_http_context,
            self.http_snapshot_provider,
            self.user_snapshot_provider,
            self.context_message_provider,
            self.extra_callback,
            include_context=self.context,
        )

    def dispatch(self, event: NormalizedEvent, sink: "EventSink") -> None:
        dispatch(event, sink)
