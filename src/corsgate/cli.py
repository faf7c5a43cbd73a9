"""Command-line interface for corsgate."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from corsgate import __version__
from corsgate.config import Config, load_config
from corsgate.gateway import CredentialInjector, DocumentFetcher, RequestRouter, normalize_url
from corsgate.gateway.formatter import FormattedResponse
from corsgate.gateway.router import ExtractionRequest
from corsgate.observability import configure_logging, start_metrics_server

logger = structlog.get_logger(__name__)


def _load(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except Exception as e:
        raise click.ClickException(f"Could not load configuration: {e}") from e


@click.group()
@click.version_option(version=__version__, prog_name="corsgate")
def cli() -> None:
    """corsgate - CORS proxy and CSS-selector extraction gateway."""


@cli.command()
@click.option("--host", default=None, help="Interface to bind (overrides config).")
@click.option("--port", type=int, default=None, help="Port to listen on (overrides config).")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="YAML config file.")
def serve(host: Optional[str], port: Optional[int], config_path: Optional[Path]) -> None:
    """Run the gateway HTTP server."""
    from corsgate.web.main import run_web_server

    config = _load(config_path)
    if host:
        config.server.host = host
    if port:
        config.server.port = port

    configure_logging(config.monitoring)
    if start_metrics_server(config.monitoring):
        logger.info("Prometheus exporter started", port=config.monitoring.prometheus_port)

    run_web_server(config)


async def _scrape(config: Config, extraction: ExtractionRequest) -> FormattedResponse:
    async with DocumentFetcher(config.fetcher) as fetcher:
        router = RequestRouter(fetcher, CredentialInjector.from_config(config.credentials))
        return await router.extract(extraction)


@cli.command()
@click.argument("url")
@click.argument("selector")
@click.option("--attr", default=None, help="Return this attribute of the first match instead of text.")
@click.option("--spaced", is_flag=True, help="Separate text from different tags with a space.")
@click.option("--pretty", is_flag=True, help="Indent the JSON output.")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="YAML config file.")
def scrape(
    url: str, selector: str, attr: Optional[str], spaced: bool, pretty: bool, config_path: Optional[Path]
) -> None:
    """Extract text or an attribute from URL and print the JSON envelope."""
    config = _load(config_path)
    configure_logging(config.monitoring)
    extraction = ExtractionRequest(
        target_url=normalize_url(url),
        selector=selector,
        attribute_name=attr or None,
        spaced=spaced,
        pretty=pretty,
    )
    formatted = asyncio.run(_scrape(config, extraction))
    click.echo(formatted.body.decode("utf-8"))
    if formatted.status_code != 200:
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
