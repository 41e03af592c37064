"""Metric registries and self-telemetry for kubestate.

Submodules:
    registry  -- MetricsRegistry: duplicate-safe CollectorRegistry with gather().
    telemetry -- Collector operational counters and the telemetry registry factory.
"""

from kubestate.metrics.registry import DuplicateCollectorError, MetricsRegistry, new_business_registry
from kubestate.metrics.telemetry import RESOURCES_PER_SCRAPE, SCRAPE_ERRORS_TOTAL, new_telemetry_registry

__all__ = [
    "RESOURCES_PER_SCRAPE",
    "SCRAPE_ERRORS_TOTAL",
    "DuplicateCollectorError",
    "MetricsRegistry",
    "new_business_registry",
    "new_telemetry_registry",
]
