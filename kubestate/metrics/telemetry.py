"""Self-telemetry metrics.

Process and interpreter statistics plus the collectors' own operational
counters.  None of these are registered in the default prometheus_client
registry; they are only reachable through :func:`new_telemetry_registry`.
"""

from __future__ import annotations

from prometheus_client import Counter, Summary
from prometheus_client.gc_collector import GCCollector
from prometheus_client.platform_collector import PlatformCollector
from prometheus_client.process_collector import ProcessCollector

from kubestate.metrics.registry import MetricsRegistry

__all__ = [
    "RESOURCES_PER_SCRAPE",
    "SCRAPE_ERRORS_TOTAL",
    "new_telemetry_registry",
]

RESOURCES_PER_SCRAPE = Summary(
    "ksm_resources_per_scrape",
    "Number of resources returned per scrape",
    ["resource"],
    registry=None,
)

SCRAPE_ERRORS_TOTAL = Counter(
    "ksm_scrape_error_total",
    "Total scrape errors encountered when scraping a resource",
    ["resource"],
    registry=None,
)


def new_telemetry_registry() -> MetricsRegistry:
    """Build the registry served by the telemetry server."""
    registry = MetricsRegistry("telemetry")
    registry.must_register(
        RESOURCES_PER_SCRAPE,
        SCRAPE_ERRORS_TOTAL,
        ProcessCollector(registry=None),
        PlatformCollector(registry=None),
    )
    # GCCollector has no registry=None form; it registers itself on CPython only.
    GCCollector(registry=registry)
    return registry
