# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Configuration models for the Sentry log target."""

import os
from dataclasses import dataclass, field
from typing import Any

from .context_message import DEFAULT_LOG_VARS, DEFAULT_MASK_VARS
from .levels import parse_levels

SINK_TYPES = ("sentry", "console", "silent")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _default(value: str | None, env_var: str, fallback: str) -> str:
    """Helper to pick an explicit value, then env var, then fallback."""
    return (value or os.getenv(env_var) or fallback)


def _env_bool(env_var: str, fallback: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None or raw.strip() == "":
        return fallback
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw}")


def _env_list(env_var: str) -> list[str]:
    raw = os.getenv(env_var, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class SinkConfig:
    """Configuration of the event sink.

    Attributes:
        sink_type: Driver name: "sentry", "console" or "silent"
        dsn: Sentry DSN (sentry driver)
        environment: Sentry environment name (sentry driver)
        client_options: Extra keyword arguments for sentry_sdk.init
        logger_name: Logger used by the console driver
    """
    sink_type: str = "sentry"
    dsn: str | None = None
    environment: str | None = None
    client_options: dict[str, Any] = field(default_factory=dict)
    logger_name: str | None = None


@dataclass
class TargetConfig:
    """Configuration of a SentryTarget.

    Attributes:
        sink: Event sink configuration
        levels: Level names to export; empty exports every level
        categories: Category patterns to export; empty exports every category
        except_categories: Category patterns never exported
        context: Attach the context dump to message events
        log_vars: Variables included in the context dump
        mask_vars: Key patterns masked in the context dump
        capacity: Number of buffered records that triggers an export
        trace_level: Call-site frames captured per record
        ignore_server_port: Never append SERVER_PORT to request URLs
        trust_x_forwarded_proto: Honour X-Forwarded-Proto for request URLs
    """
    sink: SinkConfig = field(default_factory=SinkConfig)
    levels: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    except_categories: list[str] = field(default_factory=list)
    context: bool = True
    log_vars: list[str] = field(default_factory=lambda: list(DEFAULT_LOG_VARS))
    mask_vars: list[str] = field(default_factory=lambda: list(DEFAULT_MASK_VARS))
    capacity: int = 1000
    trace_level: int = 0
    ignore_server_port: bool = False
    trust_x_forwarded_proto: bool = False

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If the sink type, a level name, capacity or
                trace_level is invalid
        """
        if self.sink.sink_type.lower() not in SINK_TYPES:
            raise ValueError(
                f"Unknown sink_type: {self.sink.sink_type}. "
                f"Must be one of: {', '.join(SINK_TYPES)}"
            )
        parse_levels(self.levels)
        if self.capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {self.capacity}")
        if self.trace_level < 0:
            raise ValueError(f"trace_level must be >= 0, got {self.trace_level}")

    @classmethod
    def from_env(cls, sink_type: str | None = None, dsn: str | None = None) -> "TargetConfig":
        """Create a TargetConfig from environment variables.

        Explicit arguments win over SENTRY_TARGET_SINK and SENTRY_DSN.

        Args:
            sink_type: Sink driver name
            dsn: Sentry DSN

        Returns:
            Validated TargetConfig instance

        Raises:
            ValueError: If an environment value is invalid
        """
        sink = SinkConfig(
            sink_type=_default(sink_type, "SENTRY_TARGET_SINK", "sentry").lower(),
            dsn=dsn or os.getenv("SENTRY_DSN") or None,
            environment=os.getenv("SENTRY_ENVIRONMENT") or None,
            logger_name=os.getenv("SENTRY_TARGET_LOGGER_NAME") or None,
        )

        capacity_raw = _default(None, "SENTRY_TARGET_CAPACITY", "1000")
        try:
            capacity = int(capacity_raw)
        except ValueError as exc:
            raise ValueError(f"Invalid integer for SENTRY_TARGET_CAPACITY: {capacity_raw}") from exc

        config = cls(
            sink=sink,
            levels=_env_list("SENTRY_TARGET_LEVELS"),
            categories=_env_list("SENTRY_TARGET_CATEGORIES"),
            except_categories=_env_list("SENTRY_TARGET_EXCEPT"),
            context=_env_bool("SENTRY_TARGET_CONTEXT", True),
            capacity=capacity,
            ignore_server_port=_env_bool("SENTRY_TARGET_IGNORE_SERVER_PORT", False),
            trust_x_forwarded_proto=_env_bool("SENTRY_TARGET_TRUST_X_FORWARDED_PROTO", False),
        )
        config.validate()
        return config
