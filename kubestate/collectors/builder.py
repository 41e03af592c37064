"""Collector assembly.

Usage::

    collectors = (
        Builder()
        .with_enabled_collectors({"pods", "nodes"})
        .with_namespaces([ALL_NAMESPACES])
        .with_client(api_client)
        .build()
    )

``build()`` fails closed: a missing client, an empty collector set, an empty
namespace scope or an unknown collector name raises :class:`BuilderError`
instead of yielding a silently empty ``/metrics`` endpoint.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import structlog

from kubestate.collectors.base import ResourceCollector
from kubestate.collectors.core import (
    new_configmap_collector,
    new_namespace_collector,
    new_pvc_collector,
    new_secret_collector,
    new_service_collector,
)
from kubestate.collectors.nodes import new_node_collector
from kubestate.collectors.pods import new_pod_collector
from kubestate.collectors.workloads import (
    new_daemonset_collector,
    new_deployment_collector,
    new_job_collector,
    new_replicaset_collector,
    new_statefulset_collector,
)

_log = structlog.get_logger(component="collectors.builder")

CollectorFactory = Callable[[Any, Sequence[str], float], ResourceCollector]

AVAILABLE_COLLECTORS: dict[str, CollectorFactory] = {
    "configmaps": new_configmap_collector,
    "daemonsets": new_daemonset_collector,
    "deployments": new_deployment_collector,
    "jobs": new_job_collector,
    "namespaces": new_namespace_collector,
    "nodes": new_node_collector,
    "persistentvolumeclaims": new_pvc_collector,
    "pods": new_pod_collector,
    "replicasets": new_replicaset_collector,
    "secrets": new_secret_collector,
    "services": new_service_collector,
    "statefulsets": new_statefulset_collector,
}


class BuilderError(Exception):
    """Raised when ``build()`` is called with missing or invalid inputs."""


class Builder:
    """Accumulates collector settings; setters may be called in any order."""

    def __init__(self) -> None:
        self._enabled: frozenset[str] = frozenset()
        self._namespaces: tuple[str, ...] = ()
        self._client: Any = None
        self._resync_seconds: float = 60.0

    def with_enabled_collectors(self, names: Iterable[str]) -> Builder:
        self._enabled = frozenset(names)
        return self

    def with_namespaces(self, namespaces: Iterable[str]) -> Builder:
        self._namespaces = tuple(namespaces)
        return self

    def with_client(self, api_client: Any) -> Builder:
        self._client = api_client
        return self

    def with_resync_seconds(self, seconds: float) -> Builder:
        self._resync_seconds = seconds
        return self

    def build(self) -> list[ResourceCollector]:
        """Instantiate the enabled collectors, ordered by name.

        Raises:
            BuilderError: if a required input is missing or a name is unknown.
        """
        if self._client is None:
            raise BuilderError("no API client configured")
        if not self._enabled:
            raise BuilderError("no collectors enabled")
        if not self._namespaces:
            raise BuilderError("no namespaces configured")
        unknown = sorted(self._enabled - AVAILABLE_COLLECTORS.keys())
        if unknown:
            raise BuilderError(
                f"unknown collectors: {', '.join(unknown)}. Available: {', '.join(sorted(AVAILABLE_COLLECTORS))}"
            )

        collectors = [
            AVAILABLE_COLLECTORS[name](self._client, self._namespaces, self._resync_seconds)
            for name in sorted(self._enabled)
        ]
        _log.info("collectors built", collectors=[c.resource for c in collectors])
        return collectors
