"""Metric registries.

kubestate keeps two registries per process: one for cluster-state
(business) metrics and one for self-telemetry.  They never share a
collector, so neither ``/metrics`` endpoint can leak the other's families.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
from prometheus_client import CollectorRegistry
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

_log = structlog.get_logger(component="metrics.registry")


class DuplicateCollectorError(ValueError):
    """Raised when a collector, or one of its metric names, is registered twice."""


class MetricsRegistry(CollectorRegistry):
    """A :class:`CollectorRegistry` that refuses to register an instance twice.

    ``CollectorRegistry`` only rejects clashing metric names, so a collector
    that describes no families could otherwise be added repeatedly and
    duplicate its samples on every scrape.
    """

    def __init__(self, name: str) -> None:
        super().__init__(auto_describe=True)
        self.name = name
        self._registered: list[Collector] = []

    def register(self, collector: Collector) -> None:
        if any(existing is collector for existing in self._registered):
            raise DuplicateCollectorError(f"collector {collector!r} is already registered in the {self.name} registry")
        try:
            super().register(collector)
        except ValueError as exc:
            raise DuplicateCollectorError(f"{self.name} registry: {exc}") from exc
        self._registered.append(collector)

    def unregister(self, collector: Collector) -> None:
        super().unregister(collector)
        self._registered = [c for c in self._registered if c is not collector]

    def must_register(self, *collectors: Any) -> None:
        """Register every collector, raising on the first duplicate."""
        for collector in collectors:
            self.register(collector)
        _log.debug("collectors registered", registry=self.name, count=len(collectors))

    def gather(self) -> list[Metric]:
        """Return the current samples of every registered collector, in order."""
        return list(self.collect())


def new_business_registry(collectors: Iterable[Collector]) -> MetricsRegistry:
    """Build the registry served on the main ``/metrics`` endpoint."""
    registry = MetricsRegistry("business")
    registry.must_register(*collectors)
    return registry
