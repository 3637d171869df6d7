# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared fixtures for copilot_sentry_target tests."""

import logging

import pytest

from copilot_sentry_target import RawLogRecord, SilentEventSink
from copilot_sentry_target.levels import LogLevel


@pytest.fixture
def silent_sink():
    """Create a silent sink that records captured events."""
    return SilentEventSink()


@pytest.fixture
def make_record():
    """Factory for raw log records with sensible defaults."""

    def _make(payload="message", level=LogLevel.ERROR, category="app", timestamp=1000.0, trace=()):
        return RawLogRecord(
            payload=payload,
            level=level,
            category=category,
            timestamp=timestamp,
            trace=tuple(trace),
        )

    return _make


@pytest.fixture
def isolated_logger():
    """Logger that does not propagate, with handlers removed afterwards."""
    test_logger = logging.getLogger("tests.sentry_target")
    test_logger.setLevel(logging.DEBUG)
    test_logger.propagate = False
    yield test_logger
    for handler in list(test_logger.handlers):
        test_logger.removeHandler(handler)
    test_logger.propagate = True
    test_logger.setLevel(logging.NOTSET)
