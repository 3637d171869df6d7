# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""User identity for Sentry events, read from the authenticated request."""

from typing import Any

from .http_context import current_request_context


def get_user_data(request: Any) -> dict[str, Any]:
    """Return the Sentry "user" interface for an authenticated request.

    Reads the claims that the JWT middleware stores on request.state.

    Args:
        request: Request whose state carries user_id, user_email and user_roles

    Returns:
        Mapping with id, plus email and roles when present

    Raises:
        AttributeError: If the request has no authenticated user, including
            a user_id of None
    """
    state = request.state
    if state.user_id is None:
        raise AttributeError("Request has no authenticated user")
    user: dict[str, Any] = {"id": state.user_id}

    email = getattr(state, "user_email", None)
    if email:
        user["email"] = email

    roles = getattr(state, "user_roles", None)
    if roles:
        user["roles"] = list(roles)

    return user


def current_user_snapshot() -> dict[str, Any] | None:
    """Return the user of the request being served, None outside a request.

    Raises:
        AttributeError: If the current request is not authenticated
    """
    context = current_request_context()
    if context is None or context.request is None:
        return None
    return get_user_data(context.request)
