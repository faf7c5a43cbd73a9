"""
Defines Prometheus metrics for the gateway.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import start_http_server

if TYPE_CHECKING:
    from corsgate.config.config import MonitoringConfig

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Test suites reload modules; re-registering a collector name raises, so the
# factories hand back the collector already in the registry.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "requests_total": Counter(
            "corsgate_requests_total",
            "Requests handled, by routing mode",
            ["mode"],
        ),
        "errors_total": Counter(
            "corsgate_errors_total",
            "Error envelopes produced, by error kind",
            ["kind"],
        ),
        "upstream_latency_seconds": Histogram(
            "corsgate_upstream_latency_seconds",
            "Time spent waiting on the upstream fetch",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def start_metrics_server(config: MonitoringConfig) -> bool:
    """Start the Prometheus exporter when a port is configured."""
    if not config.prometheus_port:
        return False
    start_http_server(config.prometheus_port)
    return True
