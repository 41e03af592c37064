"""Metric families for core/v1 objects other than pods and nodes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubestate.collectors.base import (
    FamilyGenerator,
    LabeledValues,
    ResourceCollector,
    cluster_lister,
    created,
    label,
    namespaced_lister,
)
from kubestate.collectors.nodes import parse_quantity


def _key(obj: Any) -> tuple[str, str]:
    return (label(obj.metadata.namespace), label(obj.metadata.name))


def _phases(phases: Sequence[str], key=_key):
    def _generate(obj: Any) -> LabeledValues:
        phase = obj.status.phase if obj.status else None
        if phase is None:
            return []
        return [((*key(obj), p), 1.0 if p == phase else 0.0) for p in phases]

    return _generate


def _resource_version(obj: Any) -> LabeledValues:
    # resourceVersion is opaque; only numeric versions can become a sample value.
    version = obj.metadata.resource_version
    if version is None or not str(version).isdigit():
        return []
    return [(_key(obj), float(version))]


# ---------------------------------------------------------------------------
# Namespaces
# ---------------------------------------------------------------------------


def _namespace_key(ns: Any) -> tuple[str]:
    return (label(ns.metadata.name),)


NAMESPACE_FAMILIES = (
    FamilyGenerator("kube_namespace_created", "Unix creation timestamp", ("namespace",), created(_namespace_key)),
    FamilyGenerator(
        "kube_namespace_status_phase",
        "kubernetes namespace status phase.",
        ("namespace", "phase"),
        _phases(("Active", "Terminating"), key=_namespace_key),
    ),
)

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def _service_info(svc: Any) -> LabeledValues:
    return [((*_key(svc), label(svc.spec.cluster_ip if svc.spec else None)), 1.0)]


def _service_type(svc: Any) -> LabeledValues:
    return [((*_key(svc), label(svc.spec.type if svc.spec else None)), 1.0)]


SERVICE_FAMILIES = (
    FamilyGenerator("kube_service_info", "Information about service.", ("namespace", "service", "cluster_ip"),
                    _service_info),
    FamilyGenerator("kube_service_created", "Unix creation timestamp", ("namespace", "service"), created(_key)),
    FamilyGenerator("kube_service_spec_type", "Type about service.", ("namespace", "service", "type"),
                    _service_type),
)

# ---------------------------------------------------------------------------
# ConfigMaps and Secrets
# ---------------------------------------------------------------------------


def _present(obj: Any) -> LabeledValues:
    return [(_key(obj), 1.0)]


def _secret_type(secret: Any) -> LabeledValues:
    return [((*_key(secret), label(secret.type)), 1.0)]


CONFIGMAP_FAMILIES = (
    FamilyGenerator("kube_configmap_info", "Information about configmap.", ("namespace", "configmap"), _present),
    FamilyGenerator("kube_configmap_created", "Unix creation timestamp", ("namespace", "configmap"), created(_key)),
    FamilyGenerator(
        "kube_configmap_metadata_resource_version",
        "Resource version representing a specific version of the configmap.",
        ("namespace", "configmap"),
        _resource_version,
    ),
)

SECRET_FAMILIES = (
    FamilyGenerator("kube_secret_info", "Information about secret.", ("namespace", "secret"), _present),
    FamilyGenerator("kube_secret_type", "Type about secret.", ("namespace", "secret", "type"), _secret_type),
    FamilyGenerator("kube_secret_created", "Unix creation timestamp", ("namespace", "secret"), created(_key)),
    FamilyGenerator(
        "kube_secret_metadata_resource_version",
        "Resource version representing a specific version of secret.",
        ("namespace", "secret"),
        _resource_version,
    ),
)

# ---------------------------------------------------------------------------
# PersistentVolumeClaims
# ---------------------------------------------------------------------------


def _pvc_info(pvc: Any) -> LabeledValues:
    spec = pvc.spec
    return [
        (
            (
                *_key(pvc),
                label(spec.storage_class_name if spec else None),
                label(spec.volume_name if spec else None),
            ),
            1.0,
        )
    ]


def _pvc_requested_storage(pvc: Any) -> LabeledValues:
    resources = pvc.spec.resources if pvc.spec else None
    requests = (resources.requests if resources else None) or {}
    if "storage" not in requests:
        return []
    return [(_key(pvc), parse_quantity(requests["storage"]))]


_PVC_KEY = ("namespace", "persistentvolumeclaim")

PVC_FAMILIES = (
    FamilyGenerator(
        "kube_persistentvolumeclaim_info",
        "Information about persistent volume claim.",
        (*_PVC_KEY, "storageclass", "volumename"),
        _pvc_info,
    ),
    FamilyGenerator(
        "kube_persistentvolumeclaim_status_phase",
        "The phase the persistent volume claim is currently in.",
        (*_PVC_KEY, "phase"),
        _phases(("Lost", "Bound", "Pending")),
    ),
    FamilyGenerator(
        "kube_persistentvolumeclaim_resource_requests_storage_bytes",
        "The capacity of storage requested by the persistent volume claim.",
        _PVC_KEY,
        _pvc_requested_storage,
    ),
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def new_namespace_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "namespaces",
        NAMESPACE_FAMILIES,
        cluster_lister(api.list_namespace),
        namespaces,
        resync_seconds,
        namespaced=False,
    )


def new_service_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "services",
        SERVICE_FAMILIES,
        namespaced_lister(api.list_service_for_all_namespaces, api.list_namespaced_service),
        namespaces,
        resync_seconds,
    )


def new_configmap_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "configmaps",
        CONFIGMAP_FAMILIES,
        namespaced_lister(api.list_config_map_for_all_namespaces, api.list_namespaced_config_map),
        namespaces,
        resync_seconds,
    )


def new_secret_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "secrets",
        SECRET_FAMILIES,
        namespaced_lister(api.list_secret_for_all_namespaces, api.list_namespaced_secret),
        namespaces,
        resync_seconds,
    )


def new_pvc_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.CoreV1Api(api_client)
    return ResourceCollector(
        "persistentvolumeclaims",
        PVC_FAMILIES,
        namespaced_lister(
            api.list_persistent_volume_claim_for_all_namespaces, api.list_namespaced_persistent_volume_claim
        ),
        namespaces,
        resync_seconds,
    )
