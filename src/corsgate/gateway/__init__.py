"""
Gateway core: request routing, credential injection, upstream fetching,
selector-based extraction and JSON envelopes.
"""

from .credentials import CredentialInjector, CredentialRule, build_rules, host_contains
from .errors import (
    AttributeMissingError,
    GatewayError,
    InternalError,
    InvalidSelectorError,
    MalformedURLError,
    NetworkError,
    NoMatchError,
    UpstreamStatusError,
)
from .fetcher import DocumentFetcher, FetchedDocument
from .formatter import FormattedResponse, format_error, format_result
from .preflight import handle_options
from .router import ExtractionRequest, Mode, ProxyRequest, RequestRouter, classify
from .selector import SelectionContext, SelectorEngine
from .urls import normalize_url

__all__ = [
    "AttributeMissingError",
    "CredentialInjector",
    "CredentialRule",
    "DocumentFetcher",
    "ExtractionRequest",
    "FetchedDocument",
    "FormattedResponse",
    "GatewayError",
    "InternalError",
    "InvalidSelectorError",
    "MalformedURLError",
    "Mode",
    "NetworkError",
    "NoMatchError",
    "ProxyRequest",
    "RequestRouter",
    "SelectionContext",
    "SelectorEngine",
    "UpstreamStatusError",
    "build_rules",
    "classify",
    "format_error",
    "format_result",
    "handle_options",
    "host_contains",
    "normalize_url",
]
