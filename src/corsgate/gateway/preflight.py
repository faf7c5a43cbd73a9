"""
OPTIONS handling for cross-origin preflight requests.
"""

from __future__ import annotations

from typing import Mapping

from starlette.responses import Response

ALLOWED_METHODS = ("GET", "HEAD", "POST", "OPTIONS")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ",".join(ALLOWED_METHODS),
    "Access-Control-Max-Age": "86400",
}

_PREFLIGHT_REQUIRED = ("origin", "access-control-request-method", "access-control-request-headers")


def is_preflight(headers: Mapping[str, str]) -> bool:
    return all(headers.get(name) is not None for name in _PREFLIGHT_REQUIRED)


def handle_options(headers: Mapping[str, str]) -> Response:
    """Answer a CORS preflight, or a plain OPTIONS with an Allow header."""
    if is_preflight(headers):
        return Response(
            status_code=200,
            headers={
                **CORS_HEADERS,
                "Access-Control-Allow-Headers": headers["access-control-request-headers"],
            },
        )
    return Response(status_code=200, headers={"Allow": ", ".join(ALLOWED_METHODS)})
