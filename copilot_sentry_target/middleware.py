# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Starlette middleware that exposes the current request to the log target."""

import logging
from typing import Any

from starlette.datastructures import UploadFile
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .http_context import RequestContext, request_context

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def build_environ(request: Request) -> dict[str, str]:
    """Build CGI-style request variables from a Starlette request.

    Args:
        request: The incoming request

    Returns:
        Mapping with REQUEST_METHOD, REQUEST_URI, QUERY_STRING, server
        fields and one HTTP_* key per header
    """
    query_string = request.url.query
    request_uri = request.url.path
    if query_string:
        request_uri += f"?{query_string}"

    environ: dict[str, str] = {
        "REQUEST_METHOD": request.method,
        "REQUEST_URI": request_uri,
        "QUERY_STRING": query_string,
    }

    server = request.scope.get("server")
    if server:
        host, port = server
        environ["SERVER_ADDR"] = str(host)
        if port is not None:
            environ["SERVER_PORT"] = str(port)

    if request.client:
        environ["REMOTE_ADDR"] = request.client.host

    if request.url.scheme in ("https", "wss"):
        environ["HTTPS"] = "on"

    for name, value in request.headers.items():
        key = name.upper().replace("-", "_")
        if key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            environ[key] = value
        else:
            environ[f"HTTP_{key}"] = value

    return environ


async def read_form(request: Request) -> dict[str, Any]:
    """Read the form fields of a urlencoded or multipart request.

    Uploaded files are reported by filename. Other content types and
    malformed forms yield {}.

    Args:
        request: The incoming request

    Returns:
        Mapping of field names to values
    """
    content_type = request.headers.get("content-type", "").lower()
    if not content_type.startswith(_FORM_CONTENT_TYPES):
        return {}

    try:
        form = await request.form()
    except Exception as e:
        # A malformed form must not fail the request
        logger.debug(f"Could not parse request form: {e}")
        return {}

    try:
        return {
            key: value.filename if isinstance(value, UploadFile) else value
            for key, value in form.items()
        }
    finally:
        await form.close()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Keep the request being served available to SentryTarget.

    Example:
        >>> app = FastAPI()
        >>> app.add_middleware(RequestContextMiddleware)
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Make the request context current while the endpoint runs.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler

        Returns:
            HTTP response
        """
        body = await request.body()
        context = RequestContext(
            environ=build_environ(request),
            body=body,
            form=await read_form(request),
            request=request,
        )
        with request_context(context):
            return await call_next(request)
