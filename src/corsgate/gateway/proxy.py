"""
Header handling for transparent proxy relay.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from multidict import CIMultiDict
from starlette.responses import Response

from .fetcher import FetchedDocument

# RFC 7230 section 6.1 connection-scoped headers.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Set by the client library for the upstream hop.
_REQUEST_SKIP = HOP_BY_HOP_HEADERS | {"host", "content-length", "accept-encoding"}

# The relayed body is already decoded and re-measured.
_RESPONSE_SKIP = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}


def forwardable_headers(items: Iterable[Tuple[str, str]]) -> CIMultiDict:
    """Caller headers that may be sent on to the target."""
    return CIMultiDict((k, v) for k, v in items if k.lower() not in _REQUEST_SKIP)


def relay_response(document: FetchedDocument, method: str = "GET") -> Response:
    """Rebuild the upstream response with permissive CORS headers.

    A HEAD reply has no body, so its Content-Length still describes the
    upstream resource and is relayed as is.
    """
    response = Response(content=document.body, status_code=document.status)
    if method.upper() == "HEAD" and "content-length" in document.headers:
        response.headers["content-length"] = document.headers["content-length"]
    for key, value in document.headers.items():
        if key.lower() in _RESPONSE_SKIP:
            continue
        response.headers.append(key, value)

    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers.append("Vary", "Origin")
    return response
