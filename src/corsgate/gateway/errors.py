"""Errors raised while serving a gateway request.

Every error carries the ``kind`` reported in the JSON error envelope and the
HTTP status the envelope is sent with.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for failures that are reported back to the caller."""

    kind: str = "GatewayError"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NetworkError(GatewayError):
    """The target could not be reached (DNS, connect, timeout)."""

    kind = "NetworkError"
    status_code = 502


class UpstreamStatusError(GatewayError):
    """The target answered with a non-2xx status during an extraction fetch."""

    kind = "UpstreamStatusError"
    status_code = 502

    def __init__(self, message: str, upstream_status: int):
        self.upstream_status = upstream_status
        super().__init__(message)


class MalformedURLError(GatewayError):
    kind = "MalformedURLError"
    status_code = 400


class InvalidSelectorError(GatewayError):
    kind = "InvalidSelectorError"
    status_code = 400


class NoMatchError(GatewayError):
    kind = "NoMatchError"
    status_code = 400


class AttributeMissingError(GatewayError):
    kind = "AttributeMissingError"
    status_code = 400

    def __init__(self, message: str, attribute: str):
        self.attribute = attribute
        super().__init__(message)


class InternalError(GatewayError):
    """Wraps an unexpected exception so it is still reported as an envelope."""

    kind = "InternalError"
    status_code = 502
