"""
Upstream document retrieval over a shared aiohttp session.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp
import structlog
from multidict import CIMultiDict

from corsgate.config.config import FetcherConfig
from corsgate.observability import histogram

from .errors import MalformedURLError, NetworkError
from .urls import parse_target

logger = structlog.get_logger(__name__)


@dataclass
class FetchedDocument:
    """A fully read upstream response."""

    url: str
    final_url: str
    status: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: bytes = b""
    charset: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        """Decode the body using the declared charset, falling back to utf-8."""
        if not self.body:
            return ""
        try:
            return self.body.decode(self.charset or "utf-8")
        except (LookupError, UnicodeDecodeError):
            return self.body.decode("utf-8", errors="replace")


class DocumentFetcher:
    """Performs single, non-retried upstream requests."""

    def __init__(self, config: FetcherConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Open the HTTP session. Must run inside the serving event loop."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
            )
            logger.info("Fetcher session initialized", timeout=self.config.timeout)

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Fetcher session closed")

    async def __aenter__(self) -> "DocumentFetcher":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> FetchedDocument:
        """
        Send exactly one request and read the whole response.

        Args:
            url: Absolute target URL
            method: HTTP method to send
            headers: Outgoing headers; the session User-Agent applies when absent
            body: Request body, if any

        Returns:
            FetchedDocument with whatever status the target answered with

        Raises:
            MalformedURLError: the URL cannot be requested
            NetworkError: DNS, connection or timeout failure
        """
        if self.session is None:
            raise RuntimeError("Fetcher not initialized. Call initialize() first.")

        parse_target(url)

        kwargs: dict[str, Any] = {"max_redirects": self.config.max_redirects}
        if headers is not None:
            kwargs["headers"] = headers
        if body:
            kwargs["data"] = body

        start_time = time.time()
        try:
            async with self.session.request(method, url, **kwargs) as response:
                content = await response.read()
                document = FetchedDocument(
                    url=url,
                    final_url=str(response.url),
                    status=response.status,
                    headers=CIMultiDict(response.headers),
                    body=content,
                    charset=response.charset,
                    elapsed=time.time() - start_time,
                )
        except aiohttp.InvalidURL as e:
            raise MalformedURLError(f"Invalid URL {url!r}: {e}") from e
        except asyncio.TimeoutError as e:
            logger.warning("Upstream request timed out", url=url, timeout=self.config.timeout)
            raise NetworkError(f"Timed out after {self.config.timeout}s fetching {url}") from e
        except aiohttp.ClientError as e:
            logger.warning("Upstream request failed", url=url, error=str(e))
            raise NetworkError(f"Failed to reach {url}: {str(e) or type(e).__name__}") from e

        histogram("upstream_latency_seconds", document.elapsed)
        logger.debug("Fetched", url=url, status=document.status, size=len(document.body))
        return document
