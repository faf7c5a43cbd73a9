"""
Request classification and dispatch.

A request carrying ``url`` and ``selector`` is an extraction; ``url`` alone is
proxied; anything else goes to the static page handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional

import structlog
from multidict import CIMultiDict
from starlette.requests import Request
from starlette.responses import Response

from corsgate.observability import increment

from .credentials import CredentialInjector
from .errors import GatewayError, InternalError, UpstreamStatusError
from .fetcher import DocumentFetcher
from .formatter import FormattedResponse, format_error, format_result
from .proxy import forwardable_headers, relay_response
from .selector import SelectorEngine
from .urls import normalize_url

logger = structlog.get_logger(__name__)

FALSY_FLAG_VALUES = frozenset({"0", "false", "no", "off"})

StaticHandler = Callable[[Request], Awaitable[Response]]


class Mode(str, Enum):
    STATIC = "static"
    PROXY = "proxy"
    EXTRACT = "extract"


class Stage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    EXTRACTING = "extracting"
    DONE = "done"


def is_truthy(value: Optional[str]) -> bool:
    """Presence flag: set unless absent or an explicit false-like value."""
    if value is None:
        return False
    return value.strip().lower() not in FALSY_FLAG_VALUES


def _param(params: Mapping[str, str], name: str) -> Optional[str]:
    return params.get(name) or None


def classify(params: Mapping[str, str]) -> Mode:
    if not _param(params, "url"):
        return Mode.STATIC
    if not _param(params, "selector"):
        return Mode.PROXY
    return Mode.EXTRACT


@dataclass(frozen=True)
class ExtractionRequest:
    target_url: str
    selector: str
    attribute_name: Optional[str] = None
    spaced: bool = False
    pretty: bool = False

    @property
    def attribute_mode(self) -> bool:
        return self.attribute_name is not None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "ExtractionRequest":
        return cls(
            target_url=normalize_url(params["url"]),
            selector=params["selector"],
            attribute_name=_param(params, "attr"),
            spaced=is_truthy(params.get("spaced")),
            pretty=is_truthy(params.get("pretty")),
        )


@dataclass(frozen=True)
class ProxyRequest:
    target_url: str
    method: str
    headers: CIMultiDict
    body: Optional[bytes] = None
    pretty: bool = False


def to_response(formatted: FormattedResponse) -> Response:
    return Response(
        content=formatted.body,
        status_code=formatted.status_code,
        media_type=formatted.content_type,
        headers={"Access-Control-Allow-Origin": "*"},
    )


class RequestRouter:
    """Top-level dispatcher composing the fetcher, injector and selector engine."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        injector: CredentialInjector,
        static_handler: Optional[StaticHandler] = None,
    ):
        self.fetcher = fetcher
        self.injector = injector
        self.static_handler = static_handler

    async def dispatch(self, request: Request) -> Response:
        params = request.query_params
        mode = classify(params)
        increment("requests_total", labels={"mode": mode.value})

        if mode is Mode.STATIC:
            if self.static_handler is None:
                return Response("Not found", status_code=404, media_type="text/plain")
            return await self.static_handler(request)

        if mode is Mode.PROXY:
            proxy_request = ProxyRequest(
                target_url=normalize_url(params["url"]),
                method=request.method,
                headers=forwardable_headers(request.headers.items()),
                body=await request.body() or None,
                pretty=is_truthy(params.get("pretty")),
            )
            return await self.proxy(proxy_request)

        return to_response(await self.extract(ExtractionRequest.from_params(params)))

    async def proxy(self, proxy_request: ProxyRequest) -> Response:
        """Relay the request to its target; the target's own status is passed through."""
        log = logger.bind(mode=Mode.PROXY.value, url=proxy_request.target_url)
        try:
            headers = self.injector.apply(proxy_request.target_url, proxy_request.headers)
            document = await self.fetcher.fetch(
                proxy_request.target_url,
                method=proxy_request.method,
                headers=headers,
                body=proxy_request.body,
            )
        except GatewayError as e:
            log.info("Proxy request failed", kind=e.kind, error=e.message)
            return to_response(self._error(e, proxy_request.pretty))
        except Exception as e:
            log.exception("Unexpected proxy failure")
            return to_response(self._error(InternalError(str(e) or type(e).__name__), proxy_request.pretty))

        log.info("Proxied", method=proxy_request.method, status=document.status)
        return relay_response(document, method=proxy_request.method)

    async def extract(self, extraction: ExtractionRequest) -> FormattedResponse:
        """Run an extraction and format its outcome; never raises."""
        stage = Stage.IDLE
        log = logger.bind(mode=Mode.EXTRACT.value, url=extraction.target_url, selector=extraction.selector)
        try:
            stage = Stage.FETCHING
            document = await self.fetcher.fetch(extraction.target_url)
            if not document.ok:
                raise UpstreamStatusError(
                    f"Upstream responded with HTTP {document.status} for {extraction.target_url}",
                    upstream_status=document.status,
                )

            stage = Stage.PARSING
            engine = SelectorEngine.from_document(document)
            context = engine.select(extraction.selector)

            stage = Stage.EXTRACTING
            if extraction.attribute_mode:
                result = engine.get_attribute(context, extraction.attribute_name)
            else:
                result = engine.get_text(context, spaced=extraction.spaced)
        except GatewayError as e:
            log.info("Extraction failed", failed_at=stage.value, kind=e.kind, error=e.message)
            return self._error(e, extraction.pretty)
        except Exception as e:
            log.exception("Unexpected extraction failure", failed_at=stage.value)
            return self._error(InternalError(str(e) or type(e).__name__), extraction.pretty)

        stage = Stage.DONE
        log.info("Extracted", stage=stage.value, matches=len(context))
        return format_result(result, extraction.pretty)

    def _error(self, error: GatewayError, pretty: bool) -> FormattedResponse:
        increment("errors_total", labels={"kind": error.kind})
        return format_error(error, pretty)
