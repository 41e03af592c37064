"""Pod metric families."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubestate.collectors.base import (
    FamilyGenerator,
    LabeledValues,
    ResourceCollector,
    as_float,
    condition_values,
    created,
    label,
    namespaced_lister,
)

POD_PHASES = ("Pending", "Succeeded", "Failed", "Running", "Unknown")


def _key(pod: Any) -> tuple[str, str]:
    return (label(pod.metadata.namespace), label(pod.metadata.name))


def _info(pod: Any) -> LabeledValues:
    status = pod.status
    return [
        (
            (
                *_key(pod),
                label(status.host_ip if status else None),
                label(status.pod_ip if status else None),
                label(pod.spec.node_name if pod.spec else None),
            ),
            1.0,
        )
    ]


def _owner(pod: Any) -> LabeledValues:
    owners = pod.metadata.owner_references or []
    if not owners:
        return [((*_key(pod), "<none>", "<none>", "false"), 1.0)]
    return [
        ((*_key(pod), label(o.kind), label(o.name), "true" if o.controller else "false"), 1.0) for o in owners
    ]


def _phase(pod: Any) -> LabeledValues:
    phase = pod.status.phase if pod.status else None
    if phase is None:
        return []
    return [((*_key(pod), p), 1.0 if p == phase else 0.0) for p in POD_PHASES]


def _condition(condition_type: str):
    def _generate(pod: Any) -> LabeledValues:
        for condition in (pod.status.conditions if pod.status else None) or []:
            if condition.type == condition_type:
                return [((*_key(pod), s), v) for s, v in condition_values(condition.status)]
        return []

    return _generate


def _container_statuses(pod: Any) -> Sequence[Any]:
    return (pod.status.container_statuses if pod.status else None) or []


def _container_info(pod: Any) -> LabeledValues:
    return [
        ((*_key(pod), label(cs.name), label(cs.image), label(cs.image_id), label(cs.container_id)), 1.0)
        for cs in _container_statuses(pod)
    ]


def _container_field(getter):
    def _generate(pod: Any) -> LabeledValues:
        return [((*_key(pod), label(cs.name)), as_float(getter(cs))) for cs in _container_statuses(pod)]

    return _generate


def _waiting_reason(pod: Any) -> LabeledValues:
    samples = []
    for cs in _container_statuses(pod):
        waiting = cs.state.waiting if cs.state else None
        if waiting is not None and waiting.reason:
            samples.append(((*_key(pod), label(cs.name), waiting.reason), 1.0))
    return samples


_KEY = ("namespace", "pod")
_CONTAINER_KEY = (*_KEY, "container")

POD_FAMILIES = (
    FamilyGenerator(
        "kube_pod_info", "Information about pod.", (*_KEY, "host_ip", "pod_ip", "node"), _info
    ),
    FamilyGenerator("kube_pod_created", "Unix creation timestamp", _KEY, created(_key)),
    FamilyGenerator(
        "kube_pod_owner",
        "Information about the Pod's owner.",
        (*_KEY, "owner_kind", "owner_name", "owner_is_controller"),
        _owner,
    ),
    FamilyGenerator("kube_pod_status_phase", "The pods current phase.", (*_KEY, "phase"), _phase),
    FamilyGenerator(
        "kube_pod_status_ready", "Describes whether the pod is ready to serve requests.", (*_KEY, "condition"),
        _condition("Ready"),
    ),
    FamilyGenerator(
        "kube_pod_status_scheduled",
        "Describes the status of the scheduling process for the pod.",
        (*_KEY, "condition"),
        _condition("PodScheduled"),
    ),
    FamilyGenerator(
        "kube_pod_container_info",
        "Information about a container in a pod.",
        (*_CONTAINER_KEY, "image", "image_id", "container_id"),
        _container_info,
    ),
    FamilyGenerator(
        "kube_pod_container_status_ready",
        "Describes whether the containers readiness check succeeded.",
        _CONTAINER_KEY,
        _container_field(lambda cs: cs.ready),
    ),
    FamilyGenerator(
        "kube_pod_container_status_running",
        "Describes whether the container is currently in running state.",
        _CONTAINER_KEY,
        _container_field(lambda cs: cs.state is not None and cs.state.running is not None),
    ),
    FamilyGenerator(
        "kube_pod_container_status_terminated",
        "Describes whether the container is currently in terminated state.",
        _CONTAINER_KEY,
        _container_field(lambda cs: cs.state is not None and cs.state.terminated is not None),
    ),
    FamilyGenerator(
        "kube_pod_container_status_waiting_reason",
        "Describes the reason the container is currently in waiting state.",
        (*_CONTAINER_KEY, "reason"),
        _waiting_reason,
    ),
    FamilyGenerator(
        "kube_pod_container_status_restarts_total",
        "The number of container restarts per container.",
        _CONTAINER_KEY,
        _container_field(lambda cs: cs.restart_count),
        kind="counter",
    ),
)


def new_pod_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "pods",
        POD_FAMILIES,
        namespaced_lister(api.list_pod_for_all_namespaces, api.list_namespaced_pod),
        namespaces,
        resync_seconds,
    )
