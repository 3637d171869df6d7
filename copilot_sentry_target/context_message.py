# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Dump of ambient variables attached to message events as extra.context."""

import os
import pprint
from collections.abc import Iterable, Mapping
from fnmatch import fnmatchcase
from typing import Any

from .http_context import current_request_context

DEFAULT_LOG_VARS = ("environ",)
DEFAULT_MASK_VARS = (
    "HTTP_AUTHORIZATION",
    "HTTP_COOKIE",
    "*PASSWORD*",
    "*SECRET*",
    "*TOKEN*",
    "*API_KEY*",
)


def _mask(values: Mapping[str, Any], mask_vars: Iterable[str]) -> dict[str, Any]:
    patterns = [pattern.upper() for pattern in mask_vars]
    return {
        key: "***" if any(fnmatchcase(key.upper(), p) for p in patterns) else value
        for key, value in values.items()
    }


def get_context_message(
    environ: Mapping[str, Any] | None,
    log_vars: Iterable[str] = DEFAULT_LOG_VARS,
    mask_vars: Iterable[str] = DEFAULT_MASK_VARS,
) -> str:
    """Render the selected ambient variables as text.

    Args:
        environ: Request variables, or None outside a request
        log_vars: Which variables to dump: "environ" (request variables)
            and/or "os_environ" (process environment)
        mask_vars: Key patterns whose values are replaced by "***"

    Returns:
        One "<name> = <mapping>" block per non-empty variable, separated by
        blank lines; "" if nothing was dumped
    """
    sources: dict[str, Mapping[str, Any] | None] = {
        "environ": environ,
        "os_environ": os.environ,
    }
    mask_vars = list(mask_vars)

    blocks = []
    for name in log_vars:
        if name not in sources:
            raise ValueError(f"Unknown log variable: {name}. Must be one of: {', '.join(sources)}")
        values = sources[name]
        if not values:
            continue
        blocks.append(f"{name} = {pprint.pformat(_mask(values, mask_vars))}")

    return "\n\n".join(blocks)


class ContextMessageProvider:
    """Context message provider for the current request."""

    def __init__(
        self,
        log_vars: Iterable[str] = DEFAULT_LOG_VARS,
        mask_vars: Iterable[str] = DEFAULT_MASK_VARS,
    ):
        self.log_vars = tuple(log_vars)
        self.mask_vars = tuple(mask_vars)

    def __call__(self) -> str:
        context = current_request_context()
        environ = context.environ if context is not None else None
        return get_context_message(environ, self.log_vars, self.mask_vars)
