"""Base resource collector.

A :class:`ResourceCollector` covers one Kubernetes resource kind.  It keeps
the last listed snapshot of that kind in memory, refreshes it on a fixed
period, and renders the snapshot into metric families whenever the registry
collects.  ``collect()`` never touches the network.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from prometheus_client.metrics_core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from kubestate.metrics.telemetry import RESOURCES_PER_SCRAPE, SCRAPE_ERRORS_TOTAL
from kubestate.models.config import ALL_NAMESPACES

_log = structlog.get_logger(component="collectors")

# (label values, sample value) pairs produced for one object.
LabeledValues = Iterable[tuple[Sequence[str], float]]

# Lists objects in one namespace, or across the whole cluster for None.
ListFn = Callable[[str | None], Awaitable[list[Any]]]


@dataclass(frozen=True)
class FamilyGenerator:
    """Describes one metric family and how to derive its samples from an object."""

    name: str
    help: str
    labels: tuple[str, ...]
    generate: Callable[[Any], LabeledValues]
    kind: str = "gauge"

    def family(self) -> Metric:
        if self.kind == "counter":
            return CounterMetricFamily(self.name, self.help, labels=self.labels)
        return GaugeMetricFamily(self.name, self.help, labels=self.labels)


def label(value: Any) -> str:
    """Render an optional field as a label value."""
    return "" if value is None else str(value)


def as_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    return float(value)


def timestamp(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def created(key: Callable[[Any], Sequence[str]]) -> Callable[[Any], LabeledValues]:
    """Generator for ``*_created``: creation time as a unix timestamp."""

    def _generate(obj: Any) -> LabeledValues:
        ts = timestamp(obj.metadata.creation_timestamp)
        return [] if ts is None else [(key(obj), ts)]

    return _generate


def numeric(key: Callable[[Any], Sequence[str]], getter: Callable[[Any], Any]) -> Callable[[Any], LabeledValues]:
    """Generator for a single numeric field; absent fields emit nothing."""

    def _generate(obj: Any) -> LabeledValues:
        value = getter(obj)
        return [] if value is None else [(key(obj), as_float(value))]

    return _generate


def condition_values(status: str | None) -> list[tuple[str, float]]:
    """Expand a condition status into one sample per possible status."""
    return [(s, 1.0 if status == s.capitalize() else 0.0) for s in ("true", "false", "unknown")]


def namespaced_lister(list_all: Callable[..., Awaitable[Any]], list_namespaced: Callable[..., Awaitable[Any]]) -> ListFn:
    async def _list(namespace: str | None) -> list[Any]:
        result = await (list_all() if namespace is None else list_namespaced(namespace))
        return list(result.items)

    return _list


def cluster_lister(list_all: Callable[..., Awaitable[Any]]) -> ListFn:
    async def _list(_namespace: str | None) -> list[Any]:
        result = await list_all()
        return list(result.items)

    return _list


class ResourceCollector(Collector):
    """Collector for one resource kind, scoped to a set of namespaces.

    Args:
        resource:       Collector name, used as the ``resource`` label of the
                        operational counters (e.g. ``"pods"``).
        generators:     Metric families this collector produces.
        list_fn:        Coroutine listing objects; see :data:`ListFn`.
        namespaces:     Namespace scope; ``(ALL_NAMESPACES,)`` lists cluster-wide.
        resync_seconds: Period between two relists.
        namespaced:     False for cluster-scoped kinds, which ignore ``namespaces``.
    """

    def __init__(
        self,
        resource: str,
        generators: Sequence[FamilyGenerator],
        list_fn: ListFn,
        namespaces: Sequence[str],
        resync_seconds: float = 60.0,
        namespaced: bool = True,
    ) -> None:
        self.resource = resource
        self.generators = tuple(generators)
        self.namespaces = tuple(namespaces)
        self.namespaced = namespaced
        self._list_fn = list_fn
        self._resync_seconds = resync_seconds
        self._objects: list[Any] = []
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} resource={self.resource!r} namespaces={list(self.namespaces)!r}>"

    # ------------------------------------------------------------------
    # prometheus_client collector contract
    # ------------------------------------------------------------------

    def describe(self) -> list[Metric]:
        return [g.family() for g in self.generators]

    def collect(self) -> Iterator[Metric]:
        objects = self._objects
        RESOURCES_PER_SCRAPE.labels(self.resource).observe(len(objects))
        for generator in self.generators:
            family = generator.family()
            for obj in objects:
                for values, value in generator.generate(obj):
                    family.add_metric(list(values), value)
            yield family

    # ------------------------------------------------------------------
    # Snapshot maintenance
    # ------------------------------------------------------------------

    @property
    def cluster_wide(self) -> bool:
        return not self.namespaced or self.namespaces == (ALL_NAMESPACES,)

    def replace(self, objects: Iterable[Any]) -> None:
        """Swap in a new snapshot."""
        self._objects = list(objects)

    async def list_objects(self) -> list[Any]:
        if self.cluster_wide:
            return await self._list_fn(None)
        objects: list[Any] = []
        for namespace in self.namespaces:
            objects.extend(await self._list_fn(namespace))
        return objects

    async def refresh(self) -> bool:
        """Relist the resource.  On failure the previous snapshot is kept.

        Returns:
            True when the snapshot was replaced.
        """
        try:
            objects = await self.list_objects()
        except Exception as exc:
            SCRAPE_ERRORS_TOTAL.labels(self.resource).inc()
            _log.error("list failed", resource=self.resource, error=str(exc))
            return False
        self.replace(objects)
        _log.debug("snapshot refreshed", resource=self.resource, count=len(objects))
        return True

    async def start(self) -> None:
        """List once, then keep relisting in a background task."""
        if self._task is not None:
            return
        await self.refresh()
        self._task = asyncio.create_task(self._resync_loop(), name=f"collector-{self.resource}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def _resync_loop(self) -> None:
        while True:
            await asyncio.sleep(self._resync_seconds)
            await self.refresh()
