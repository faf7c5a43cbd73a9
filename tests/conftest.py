"""
Shared fixtures for the corsgate test suite.
"""

from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
import structlog
from aioresponses import aioresponses
from fastapi.testclient import TestClient

from corsgate.config import Config
from corsgate.gateway import CredentialInjector, DocumentFetcher, RequestRouter
from corsgate.web.main import create_app, static_page

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")

    # Route structlog through stdlib logging so pytest captures it instead of
    # the default printer writing to stdout.
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


# ============================================================================
# Markup
# ============================================================================


@pytest.fixture
def sample_html() -> str:
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Test Article</title></head>
    <body>
        <h1 id="headline" class="title">Test Article Title</h1>
        <p class="intro">Hello<b>World</b></p>
        <ul class="links">
            <li><a href="/one" rel="nofollow">One</a></li>
            <li><a href="/two">Two</a></li>
        </ul>
        <img src="x.png" alt="An image">
        <input type="checkbox" disabled>
    </body>
    </html>
    """


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config() -> Config:
    """Configuration with a known secret and a short timeout."""
    return Config(
        fetcher={"timeout": 5.0, "user_agent": "corsgate-test/1.0"},
        credentials={
            "riot_api_token": "riot-secret",
            "wimmmr_user_agent": "mmr-agent/2.0",
        },
    )


# ============================================================================
# Gateway Fixtures
# ============================================================================


@pytest.fixture
def mock_upstream() -> Generator[aioresponses, None, None]:
    """Intercept every aiohttp request; unregistered URLs fail to connect."""
    with aioresponses() as m:
        yield m


@pytest_asyncio.fixture
async def fetcher(config: Config) -> AsyncGenerator[DocumentFetcher, None]:
    async with DocumentFetcher(config.fetcher) as f:
        yield f


@pytest.fixture
def router(fetcher: DocumentFetcher, config: Config) -> RequestRouter:
    return RequestRouter(fetcher, CredentialInjector.from_config(config.credentials), static_handler=static_page)


@pytest.fixture
def client(config: Config) -> Generator[TestClient, None, None]:
    """TestClient with the app lifespan (and upstream session) running."""
    with TestClient(create_app(config)) as test_client:
        yield test_client
