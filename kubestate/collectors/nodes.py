"""Node metric families."""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubestate.collectors.base import (
    FamilyGenerator,
    LabeledValues,
    ResourceCollector,
    cluster_lister,
    condition_values,
    created,
    label,
    numeric,
)

_QUANTITY_RE = re.compile(r"^([+-]?[0-9.]+(?:[eE][+-]?[0-9]+)?)([a-zA-Z]*)$")

_SUFFIXES = {
    "": Decimal(1),
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "k": Decimal(10) ** 3,
    "M": Decimal(10) ** 6,
    "G": Decimal(10) ** 9,
    "T": Decimal(10) ** 12,
    "P": Decimal(10) ** 15,
    "E": Decimal(10) ** 18,
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}


def parse_quantity(quantity: str | int | float) -> float:
    """Parse a Kubernetes resource quantity (``"500m"``, ``"8Gi"``) into a float.

    Raises:
        ValueError: if the string is not a valid quantity.
    """
    if isinstance(quantity, (int, float)):
        return float(quantity)
    match = _QUANTITY_RE.match(quantity.strip())
    if match is None or match.group(2) not in _SUFFIXES:
        raise ValueError(f"Invalid quantity: {quantity!r}")
    return float(Decimal(match.group(1)) * _SUFFIXES[match.group(2)])


def _key(node: Any) -> tuple[str]:
    return (label(node.metadata.name),)


def _info(node: Any) -> LabeledValues:
    info = node.status.node_info if node.status else None
    return [
        (
            (
                *_key(node),
                label(info.kernel_version if info else None),
                label(info.os_image if info else None),
                label(info.container_runtime_version if info else None),
                label(info.kubelet_version if info else None),
                label(info.kube_proxy_version if info else None),
                label(node.spec.provider_id if node.spec else None),
            ),
            1.0,
        )
    ]


def _conditions(node: Any) -> LabeledValues:
    samples = []
    for condition in (node.status.conditions if node.status else None) or []:
        for status, value in condition_values(condition.status):
            samples.append(((*_key(node), label(condition.type), status), value))
    return samples


def _resource(section: str, resource: str):
    def _get(node: Any) -> float | None:
        values = getattr(node.status, section, None) if node.status else None
        if not values or resource not in values:
            return None
        return parse_quantity(values[resource])

    return _get


_KEY = ("node",)

NODE_FAMILIES = (
    FamilyGenerator(
        "kube_node_info",
        "Information about a cluster node.",
        (*_KEY, "kernel_version", "os_image", "container_runtime_version", "kubelet_version",
         "kubeproxy_version", "provider_id"),
        _info,
    ),
    FamilyGenerator("kube_node_created", "Unix creation timestamp", _KEY, created(_key)),
    FamilyGenerator(
        "kube_node_spec_unschedulable",
        "Whether a node can schedule new pods.",
        _KEY,
        numeric(_key, lambda n: bool(n.spec.unschedulable) if n.spec else False),
    ),
    FamilyGenerator(
        "kube_node_status_condition",
        "The condition of a cluster node.",
        (*_KEY, "condition", "status"),
        _conditions,
    ),
    FamilyGenerator(
        "kube_node_status_capacity_cpu_cores", "The total CPU resources of the node.", _KEY,
        numeric(_key, _resource("capacity", "cpu")),
    ),
    FamilyGenerator(
        "kube_node_status_capacity_memory_bytes", "The total memory resources of the node.", _KEY,
        numeric(_key, _resource("capacity", "memory")),
    ),
    FamilyGenerator(
        "kube_node_status_capacity_pods", "The total pod resources of the node.", _KEY,
        numeric(_key, _resource("capacity", "pods")),
    ),
    FamilyGenerator(
        "kube_node_status_allocatable_cpu_cores",
        "The CPU resources of a node that are available for scheduling.",
        _KEY,
        numeric(_key, _resource("allocatable", "cpu")),
    ),
    FamilyGenerator(
        "kube_node_status_allocatable_memory_bytes",
        "The memory resources of a node that are available for scheduling.",
        _KEY,
        numeric(_key, _resource("allocatable", "memory")),
    ),
    FamilyGenerator(
        "kube_node_status_allocatable_pods",
        "The pod resources of a node that are available for scheduling.",
        _KEY,
        numeric(_key, _resource("allocatable", "pods")),
    ),
)


def new_node_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "nodes",
        NODE_FAMILIES,
        cluster_lister(api.list_node),
        namespaces,
        resync_seconds,
        namespaced=False,
    )
