# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Severity levels understood by the Sentry log target."""

import logging
from collections.abc import Iterable
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Severity ordinals carried by raw log records."""

    ERROR = 0x01
    WARNING = 0x02
    INFO = 0x04
    TRACE = 0x08
    PROFILE = 0x40
    PROFILE_BEGIN = 0x50
    PROFILE_END = 0x60


_LEVEL_NAMES: dict[int, str] = {
    LogLevel.ERROR: "error",
    LogLevel.WARNING: "warning",
    LogLevel.INFO: "info",
    LogLevel.TRACE: "debug",
    LogLevel.PROFILE_BEGIN: "debug",
    LogLevel.PROFILE_END: "debug",
}

_LEVELS_BY_NAME: dict[str, frozenset[LogLevel]] = {
    "error": frozenset({LogLevel.ERROR}),
    "warning": frozenset({LogLevel.WARNING}),
    "info": frozenset({LogLevel.INFO}),
    "trace": frozenset({LogLevel.TRACE}),
    "profile": frozenset({LogLevel.PROFILE, LogLevel.PROFILE_BEGIN, LogLevel.PROFILE_END}),
}


def get_level_name(level: Any) -> str:
    """Return the Sentry level name for a log level.

    Unknown values (including non-integers) map to "error".

    Args:
        level: The record level, e.g. LogLevel.ERROR or LogLevel.WARNING

    Returns:
        One of "error", "warning", "info" or "debug"
    """
    try:
        return _LEVEL_NAMES.get(level, "error")
    except TypeError:
        # Unhashable values cannot be levels
        return "error"


def from_stdlib_level(levelno: int) -> LogLevel:
    """Map a stdlib logging level number onto LogLevel."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARNING
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.TRACE


def parse_levels(names: Iterable[str] | None) -> frozenset[LogLevel]:
    """Parse level names into the set of levels a target accepts.

    Args:
        names: Level names (error, warning, info, trace, profile). An empty
            or missing list means every level is accepted.

    Returns:
        Set of accepted levels; empty when all levels are accepted

    Raises:
        ValueError: If a name is not recognized
    """
    levels: set[LogLevel] = set()
    for name in names or ():
        key = name.strip().lower()
        if not key:
            continue
        if key not in _LEVELS_BY_NAME:
            supported = ", ".join(_LEVELS_BY_NAME)
            raise ValueError(f"Unknown log level: {name}. Must be one of: {supported}")
        levels |= _LEVELS_BY_NAME[key]
    return frozenset(levels)
