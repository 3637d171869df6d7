# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for target configuration."""

import os
from unittest.mock import patch

import pytest

from copilot_sentry_target import SinkConfig, TargetConfig


class TestTargetConfig:
    """Tests for TargetConfig validation."""

    def test_defaults(self):
        """Test default values."""
        config = TargetConfig()

        assert config.sink.sink_type == "sentry"
        assert config.context is True
        assert config.capacity == 1000
        assert config.trace_level == 0
        assert config.levels == []
        config.validate()

    def test_unknown_sink_type(self):
        """Test that an unknown sink type is rejected."""
        with pytest.raises(ValueError, match="Unknown sink_type"):
            TargetConfig(sink=SinkConfig(sink_type="kafka")).validate()

    def test_unknown_level(self):
        """Test that an unknown level name is rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            TargetConfig(levels=["loud"]).validate()

    def test_negative_capacity(self):
        """Test that a negative capacity is rejected."""
        with pytest.raises(ValueError, match="capacity"):
            TargetConfig(capacity=-1).validate()

    def test_negative_trace_level(self):
        """Test that a negative trace level is rejected."""
        with pytest.raises(ValueError, match="trace_level"):
            TargetConfig(trace_level=-1).validate()


class TestTargetConfigFromEnv:
    """Tests for TargetConfig.from_env."""

    def test_defaults_from_empty_env(self):
        """Test defaults when no variables are set."""
        with patch.dict(os.environ, {}, clear=True):
            config = TargetConfig.from_env()

        assert config.sink.sink_type == "sentry"
        assert config.sink.dsn is None
        assert config.context is True
        assert config.capacity == 1000

    def test_reads_variables(self):
        """Test reading every supported variable."""
        with patch.dict(os.environ, {
            "SENTRY_TARGET_SINK": "Console",
            "SENTRY_DSN": "https://key@example.com/1",
            "SENTRY_ENVIRONMENT": "staging",
            "SENTRY_TARGET_LEVELS": "error, warning",
            "SENTRY_TARGET_CATEGORIES": "app.*",
            "SENTRY_TARGET_EXCEPT": "app.health,uvicorn.*",
            "SENTRY_TARGET_CONTEXT": "no",
            "SENTRY_TARGET_CAPACITY": "50",
            "SENTRY_TARGET_IGNORE_SERVER_PORT": "true",
            "SENTRY_TARGET_TRUST_X_FORWARDED_PROTO": "1",
        }, clear=True):
            config = TargetConfig.from_env()

        assert config.sink.sink_type == "console"
        assert config.sink.dsn == "https://key@example.com/1"
        assert config.sink.environment == "staging"
        assert config.levels == ["error", "warning"]
        assert config.categories == ["app.*"]
        assert config.except_categories == ["app.health", "uvicorn.*"]
        assert config.context is False
        assert config.capacity == 50
        assert config.ignore_server_port is True
        assert config.trust_x_forwarded_proto is True

    def test_explicit_values_win(self):
        """Test that explicit arguments override the environment."""
        with patch.dict(os.environ, {"SENTRY_TARGET_SINK": "console", "SENTRY_DSN": "https://env@x/1"}, clear=True):
            config = TargetConfig.from_env(sink_type="silent", dsn="https://arg@x/1")

        assert config.sink.sink_type == "silent"
        assert config.sink.dsn == "https://arg@x/1"

    def test_invalid_boolean(self):
        """Test that an invalid boolean raises ValueError."""
        with patch.dict(os.environ, {"SENTRY_TARGET_CONTEXT": "maybe"}, clear=True):
            with pytest.raises(ValueError, match="SENTRY_TARGET_CONTEXT"):
                TargetConfig.from_env()

    def test_invalid_capacity(self):
        """Test that a non-integer capacity raises ValueError."""
        with patch.dict(os.environ, {"SENTRY_TARGET_CAPACITY": "lots"}, clear=True):
            with pytest.raises(ValueError, match="SENTRY_TARGET_CAPACITY"):
                TargetConfig.from_env()

    def test_invalid_sink(self):
        """Test that an unknown sink type from the environment is rejected."""
        with patch.dict(os.environ, {"SENTRY_TARGET_SINK": "kafka"}, clear=True):
            with pytest.raises(ValueError, match="Unknown sink_type"):
                TargetConfig.from_env()
