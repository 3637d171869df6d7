# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Data models for raw log records and normalized Sentry events."""

import logging
import os
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .levels import from_stdlib_level

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_LOGGING_DIR = os.path.dirname(os.path.abspath(logging.__file__))


def _stack_info_frames(stack_info: str) -> tuple[str, ...]:
    """Extract the 'File ...' lines from a formatted stack."""
    return tuple(
        line.strip()
        for line in stack_info.splitlines()
        if line.lstrip().startswith("File ")
    )


def _call_site_frames(trace_level: int) -> tuple[str, ...]:
    """Describe the innermost application frames, most recent first."""
    frames = []
    for frame in reversed(traceback.extract_stack()):
        filename = os.path.abspath(frame.filename)
        if filename.startswith((_PACKAGE_DIR + os.sep, _LOGGING_DIR + os.sep)):
            continue
        frames.append(f"{frame.filename}:{frame.lineno} in {frame.name}")
        if len(frames) >= trace_level:
            break
    return tuple(frames)


@dataclass(frozen=True)
class RawLogRecord:
    """One log entry as delivered by the logging pipeline.

    Attributes:
        payload: Text, a mapping, an exception, or a mapping whose "msg"
            is an exception
        level: Severity ordinal (see LogLevel)
        category: Name of the subsystem that emitted the record
        timestamp: Seconds since the epoch
        trace: Stack frame descriptions, most recent first
    """

    payload: Any
    level: int
    category: str
    timestamp: float
    trace: tuple[str, ...] = ()

    @classmethod
    def from_logging_record(cls, record: logging.LogRecord, trace_level: int = 0) -> "RawLogRecord":
        """Build a raw record from a stdlib LogRecord.

        Mapping and exception messages are kept as-is; anything else is
        rendered with the record's arguments. An attached exception is
        nested under "msg" so it is reported as an exception event.

        Args:
            record: The stdlib logging record
            trace_level: Number of call-site frames to capture when the
                record carries no stack_info

        Returns:
            RawLogRecord instance
        """
        payload: Any
        if isinstance(record.msg, (Mapping, BaseException)):
            payload = record.msg
        else:
            payload = record.getMessage()

        exc_value = record.exc_info[1] if record.exc_info else None
        if exc_value is not None and not isinstance(payload, BaseException):
            if isinstance(payload, Mapping):
                rest = dict(payload)
                if "msg" in rest:
                    rest["log_message"] = rest.pop("msg")
                payload = {**rest, "msg": exc_value}
            else:
                payload = {"msg": exc_value, "log_message": payload}

        if record.stack_info:
            trace = _stack_info_frames(record.stack_info)
        elif trace_level > 0:
            trace = _call_site_frames(trace_level)
        else:
            trace = ()

        return cls(
            payload=payload,
            level=from_stdlib_level(record.levelno),
            category=record.name,
            timestamp=record.created,
            trace=trace,
        )


@dataclass(frozen=True)
class NormalizedEvent:
    """Canonical event handed to an event sink.

    An event either carries an exception or a message/extra pair, never both.
    """

    level: str
    timestamp: float
    tags: dict[str, str]
    extra: dict[str, Any] = field(default_factory=dict)
    message: str | None = None
    exception: BaseException | None = None
    request: dict[str, Any] | None = None
    user: dict[str, Any] | None = None

    @property
    def has_exception(self) -> bool:
        return self.exception is not None

    def to_dict(self) -> dict[str, Any]:
        """Render the event as a Sentry event mapping.

        The exception itself is not included; sinks report it separately.
        """
        data: dict[str, Any] = {
            "level": self.level,
            "timestamp": self.timestamp,
            "tags": dict(self.tags),
            "extra": dict(self.extra),
        }
        if self.message is not None:
            data["message"] = self.message
        if self.request is not None:
            data["request"] = self.request
        if self.user is not None:
            data["user"] = self.user
        return data
