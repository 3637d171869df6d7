# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""HTTP request context for Sentry events.

Request data is read from a CGI-style environ mapping (REQUEST_METHOD,
HTTP_* headers, SERVER_PORT, ...). The environ of the request being served
is kept in a ContextVar by RequestContextMiddleware so log records emitted
while handling it can carry the request snapshot.
"""

import json
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from starlette.requests import cookie_parser

_PORT_SUFFIX = re.compile(r":[0-9]*$")
_DEFAULT_PORTS = (80, 443)


@dataclass(frozen=True)
class RequestContext:
    """Ambient data of the request being served.

    Attributes:
        environ: CGI-style request variables
        body: Raw request body
        form: Parsed form fields, empty when the body is not a form
        request: The framework request object, if any
    """

    environ: Mapping[str, str]
    body: bytes = b""
    form: dict[str, Any] = field(default_factory=dict)
    request: Any = None


_current_request: ContextVar[RequestContext | None] = ContextVar(
    "copilot_sentry_target_request", default=None
)


def current_request_context() -> RequestContext | None:
    """Return the context of the request being served, if any."""
    return _current_request.get()


@contextmanager
def request_context(context: RequestContext | None) -> Iterator[RequestContext | None]:
    """Make a request context current for the duration of the block."""
    token = _current_request.set(context)
    try:
        yield context
    finally:
        _current_request.reset(token)


def is_http_request() -> bool:
    """Return True while serving a request that has a method."""
    context = _current_request.get()
    return context is not None and bool(context.environ.get("REQUEST_METHOD"))


def _header_name(key: str) -> str:
    words = key.replace("_", " ").lower().split(" ")
    return "-".join(word[:1].upper() + word[1:] for word in words)


def get_headers(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect request headers from HTTP_* keys and the content headers."""
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[_header_name(key[5:])] = value
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value != "":
            headers[_header_name(key)] = value
    return headers


def get_cookies(environ: Mapping[str, str]) -> dict[str, str]:
    raw = environ.get("HTTP_COOKIE")
    if not raw:
        return {}
    return cookie_parser(raw)


def _server_port(environ: Mapping[str, str]) -> int | None:
    try:
        return int(environ.get("SERVER_PORT") or 0) or None
    except ValueError:
        return None


def is_https(environ: Mapping[str, str], trust_x_forwarded_proto: bool = False) -> bool:
    """Return True if the request was made over TLS.

    Args:
        environ: CGI-style request variables
        trust_x_forwarded_proto: Honour X-Forwarded-Proto set by a proxy
    """
    https = environ.get("HTTPS")
    if https and https != "off":
        return True

    if _server_port(environ) == 443:
        return True

    if trust_x_forwarded_proto and environ.get("HTTP_X_FORWARDED_PROTO") == "https":
        return True

    return False


def get_current_url(
    environ: Mapping[str, str],
    ignore_server_port: bool = False,
    trust_x_forwarded_proto: bool = False,
) -> str | None:
    """Reconstruct the URL of the current request.

    Args:
        environ: CGI-style request variables
        ignore_server_port: Never append SERVER_PORT to the host
        trust_x_forwarded_proto: Honour X-Forwarded-Proto set by a proxy

    Returns:
        The absolute URL, or None when there is no REQUEST_URI
    """
    if "REQUEST_URI" not in environ:
        return None

    # Host is optional in HTTP/1.0, fall back to the server address
    host = (
        environ.get("HTTP_HOST")
        or environ.get("LOCAL_ADDR")
        or environ.get("SERVER_ADDR")
        or ""
    )

    if not ignore_server_port:
        port = _server_port(environ)
        if port is not None and port not in _DEFAULT_PORTS and not _PORT_SUFFIX.search(host):
            host += f":{port}"

    scheme = "https" if is_https(environ, trust_x_forwarded_proto) else "http"
    return f"{scheme}://{host}{environ['REQUEST_URI']}"


def _decode_json_body(body: bytes) -> dict[str, Any] | None:
    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return None
    if isinstance(data, dict) and data:
        return data
    return None


def get_http_request_data(
    environ: Mapping[str, str],
    *,
    body: bytes | None = None,
    form: Mapping[str, Any] | None = None,
    ignore_server_port: bool = False,
    trust_x_forwarded_proto: bool = False,
) -> dict[str, Any]:
    """Build the Sentry "request" interface for a request.

    Args:
        environ: CGI-style request variables
        body: Raw request body, used for JSON requests
        form: Parsed form fields, preferred over the body when non-empty
        ignore_server_port: Never append SERVER_PORT to the host
        trust_x_forwarded_proto: Honour X-Forwarded-Proto set by a proxy

    Returns:
        Mapping with method, url and query_string, plus data, cookies and
        headers when present
    """
    result: dict[str, Any] = {
        "method": environ.get("REQUEST_METHOD", ""),
        "url": get_current_url(environ, ignore_server_port, trust_x_forwarded_proto),
        "query_string": environ.get("QUERY_STRING", ""),
    }

    content_type = environ.get("CONTENT_TYPE", "")
    if form:
        result["data"] = dict(form)
    elif content_type.lower().startswith("application/json") and body:
        result["data"] = _decode_json_body(body)

    cookies = get_cookies(environ)
    if cookies:
        result["cookies"] = cookies

    headers = get_headers(environ)
    if headers:
        result["headers"] = headers

    return result


class RequestSnapshotProvider:
    """Snapshot provider reading the current request context.

    Attributes:
        ignore_server_port: Never append SERVER_PORT to the host
        trust_x_forwarded_proto: Honour X-Forwarded-Proto set by a proxy
    """

    def __init__(self, ignore_server_port: bool = False, trust_x_forwarded_proto: bool = False):
        self.ignore_server_port = ignore_server_port
        self.trust_x_forwarded_proto = trust_x_forwarded_proto

    def __call__(self) -> dict[str, Any] | None:
        context = current_request_context()
        if context is None:
            return None
        return get_http_request_data(
            context.environ,
            body=context.body,
            form=context.form,
            ignore_server_port=self.ignore_server_port,
            trust_x_forwarded_proto=self.trust_x_forwarded_proto,
        )
