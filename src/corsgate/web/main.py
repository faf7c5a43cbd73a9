"""
FastAPI application exposing the gateway on a single catch-all route.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Optional
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from corsgate.config import Config, load_config
from corsgate.gateway import CredentialInjector, DocumentFetcher, RequestRouter, handle_options
from corsgate.gateway.preflight import ALLOWED_METHODS
from corsgate.observability import increment, request_context

logger = structlog.get_logger(__name__)

# Path to the HTML template
HTML_TEMPLATE_PATH = Path(__file__).parent / "templates" / "index.html"


async def static_page(request: Request) -> Response:
    """Usage page for the bare root; anything else is not found."""
    if request.url.path in ("/", ""):
        return HTMLResponse(request.app.state.static_html)
    return PlainTextResponse("Not found", status_code=404)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the gateway app around one configuration object."""
    config = config or load_config()
    fetcher = DocumentFetcher(config.fetcher)
    injector = CredentialInjector.from_config(config.credentials)
    router = RequestRouter(fetcher, injector, static_handler=static_page)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Own the upstream session for the lifetime of the server."""
        logger.info("Starting corsgate", version=config.version, credential_rules=len(injector.rules))
        await fetcher.initialize()

        yield

        await fetcher.close()
        logger.info("Shutting down corsgate")

    app = FastAPI(
        title="corsgate",
        version=config.version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.static_html = HTML_TEMPLATE_PATH.read_text(encoding="utf-8")

    @app.api_route("/{path:path}", methods=list(ALLOWED_METHODS))
    async def gateway(request: Request, path: str) -> Response:
        if request.method == "OPTIONS":
            increment("requests_total", labels={"mode": "preflight"})
            return handle_options(request.headers)
        return await router.dispatch(request)

    @app.middleware("http")
    async def add_request_context(request: Request, call_next: Callable) -> Any:
        """Bind a correlation id for the request's logs and time the response."""
        start_time = time.time()
        request_id = str(uuid4())

        with request_context(request_id, method=request.method, path=request.url.path):
            response = await call_next(request)

            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "Request handled",
                status_code=response.status_code,
                response_time_ms=round(process_time * 1000, 2),
                client=request.client.host if request.client else None,
            )
        return response

    return app


def run_web_server(config: Config) -> None:
    """Function to run the FastAPI server."""
    import uvicorn

    app = create_app(config)
    logger.info("Serving corsgate", host=config.server.host, port=config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)
