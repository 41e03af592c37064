"""Metric families for workload controllers: deployments, daemonsets,
statefulsets, replicasets and jobs."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubestate.collectors.base import (
    FamilyGenerator,
    LabeledValues,
    ResourceCollector,
    condition_values,
    created,
    label,
    namespaced_lister,
    numeric,
    timestamp,
)


def _key(obj: Any) -> tuple[str, str]:
    return (label(obj.metadata.namespace), label(obj.metadata.name))


def _spec(attr: str) -> Callable[[Any], Any]:
    return lambda obj: getattr(obj.spec, attr, None) if obj.spec else None


def _status(attr: str) -> Callable[[Any], Any]:
    return lambda obj: getattr(obj.status, attr, None) if obj.status else None


def _generation(obj: Any) -> Any:
    return obj.metadata.generation


def _families(kind: str, fields: Sequence[tuple[str, str, Callable[[Any], Any]]]) -> list[FamilyGenerator]:
    """Build the ``created`` family plus one gauge per (suffix, help, getter)."""
    labels = ("namespace", kind)
    families = [FamilyGenerator(f"kube_{kind}_created", "Unix creation timestamp", labels, created(_key))]
    for suffix, help_text, getter in fields:
        families.append(FamilyGenerator(f"kube_{kind}_{suffix}", help_text, labels, numeric(_key, getter)))
    return families


# ---------------------------------------------------------------------------
# Deployments
# ---------------------------------------------------------------------------

DEPLOYMENT_FAMILIES = _families(
    "deployment",
    [
        ("spec_replicas", "Number of desired pods for a deployment.", _spec("replicas")),
        ("spec_paused", "Whether the deployment is paused and will not be processed by the deployment controller.",
         lambda d: bool(d.spec.paused) if d.spec else None),
        ("status_replicas", "The number of replicas per deployment.", _status("replicas")),
        ("status_replicas_available", "The number of available replicas per deployment.",
         _status("available_replicas")),
        ("status_replicas_unavailable", "The number of unavailable replicas per deployment.",
         _status("unavailable_replicas")),
        ("status_replicas_updated", "The number of updated replicas per deployment.", _status("updated_replicas")),
        ("status_observed_generation", "The generation observed by the deployment controller.",
         _status("observed_generation")),
        ("metadata_generation", "Sequence number representing a specific generation of the desired state.",
         _generation),
    ],
)

# ---------------------------------------------------------------------------
# DaemonSets
# ---------------------------------------------------------------------------

DAEMONSET_FAMILIES = _families(
    "daemonset",
    [
        ("status_current_number_scheduled", "The number of nodes running at least one daemon pod and are supposed to.",
         _status("current_number_scheduled")),
        ("status_desired_number_scheduled", "The number of nodes that should be running the daemon pod.",
         _status("desired_number_scheduled")),
        ("status_number_available", "The number of nodes that should be running the daemon pod and have one or "
         "more of the daemon pod running and available", _status("number_available")),
        ("status_number_misscheduled", "The number of nodes running a daemon pod but are not supposed to.",
         _status("number_misscheduled")),
        ("status_number_ready", "The number of nodes that should be running the daemon pod and have one or more "
         "of the daemon pod running and ready.", _status("number_ready")),
        ("status_number_unavailable", "The number of nodes that should be running the daemon pod and have none "
         "of the daemon pod running and available", _status("number_unavailable")),
        ("metadata_generation", "Sequence number representing a specific generation of the desired state.",
         _generation),
    ],
)

# ---------------------------------------------------------------------------
# StatefulSets
# ---------------------------------------------------------------------------

STATEFULSET_FAMILIES = _families(
    "statefulset",
    [
        ("replicas", "Number of desired pods for a StatefulSet.", _spec("replicas")),
        ("status_replicas", "The number of replicas per StatefulSet.", _status("replicas")),
        ("status_replicas_current", "The number of current replicas per StatefulSet.", _status("current_replicas")),
        ("status_replicas_ready", "The number of ready replicas per StatefulSet.", _status("ready_replicas")),
        ("status_replicas_updated", "The number of updated replicas per StatefulSet.", _status("updated_replicas")),
        ("status_observed_generation", "The generation observed by the StatefulSet controller.",
         _status("observed_generation")),
        ("metadata_generation", "Sequence number representing a specific generation of the desired state for "
         "the StatefulSet.", _generation),
    ],
)

# ---------------------------------------------------------------------------
# ReplicaSets
# ---------------------------------------------------------------------------


def _replicaset_owner(rs: Any) -> LabeledValues:
    key = _key(rs)
    owners = rs.metadata.owner_references or []
    if not owners:
        return [((*key, "<none>", "<none>", "false"), 1.0)]
    return [((*key, label(o.kind), label(o.name), "true" if o.controller else "false"), 1.0) for o in owners]


REPLICASET_FAMILIES = [
    *_families(
        "replicaset",
        [
            ("spec_replicas", "Number of desired pods for a ReplicaSet.", _spec("replicas")),
            ("status_replicas", "The number of replicas per ReplicaSet.", _status("replicas")),
            ("status_ready_replicas", "The number of ready replicas per ReplicaSet.", _status("ready_replicas")),
            ("status_fully_labeled_replicas", "The number of fully labeled replicas per ReplicaSet.",
             _status("fully_labeled_replicas")),
            ("status_observed_generation", "The generation observed by the ReplicaSet controller.",
             _status("observed_generation")),
            ("metadata_generation", "Sequence number representing a specific generation of the desired state.",
             _generation),
        ],
    ),
    FamilyGenerator(
        "kube_replicaset_owner",
        "Information about the ReplicaSet's owner.",
        ("namespace", "replicaset", "owner_kind", "owner_name", "owner_is_controller"),
        _replicaset_owner,
    ),
]

# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def _job_condition(condition_type: str):
    def _generate(job: Any) -> LabeledValues:
        key = _key(job)
        for condition in (job.status.conditions if job.status else None) or []:
            if condition.type == condition_type:
                return [((*key, s), v) for s, v in condition_values(condition.status)]
        return []

    return _generate


JOB_FAMILIES = [
    *_families(
        "job",
        [
            ("spec_parallelism", "The maximum desired number of pods the job should run at any given time.",
             _spec("parallelism")),
            ("spec_completions", "The desired number of successfully finished pods the job should be run with.",
             _spec("completions")),
            ("status_succeeded", "The number of pods which reached Phase Succeeded.", _status("succeeded")),
            ("status_failed", "The number of pods which reached Phase Failed.", _status("failed")),
            ("status_active", "The number of actively running pods.", _status("active")),
            ("status_start_time", "StartTime represents time when the job was acknowledged by the Job Manager.",
             lambda j: timestamp(j.status.start_time) if j.status else None),
            ("status_completion_time", "CompletionTime represents time when the job was completed.",
             lambda j: timestamp(j.status.completion_time) if j.status else None),
        ],
    ),
    FamilyGenerator(
        "kube_job_complete", "The job has completed its execution.", ("namespace", "job", "condition"),
        _job_condition("Complete"),
    ),
    FamilyGenerator(
        "kube_job_failed", "The job has failed its execution.", ("namespace", "job", "condition"),
        _job_condition("Failed"),
    ),
]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def new_deployment_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.AppsV1Api(api_client)
    return ResourceCollector(
        "deployments",
        DEPLOYMENT_FAMILIES,
        namespaced_lister(api.list_deployment_for_all_namespaces, api.list_namespaced_deployment),
        namespaces,
        resync_seconds,
    )


def new_daemonset_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.AppsV1Api(api_client)
    return ResourceCollector(
        "daemonsets",
        DAEMONSET_FAMILIES,
        namespaced_lister(api.list_daemon_set_for_all_namespaces, api.list_namespaced_daemon_set),
        namespaces,
        resync_seconds,
    )


def new_statefulset_collector(
    api_client: Any, namespaces: Sequence[str], resync_seconds: float
) -> ResourceCollector:
    api = k8s_client.AppsV1Api(api_client)
    return ResourceCollector(
        "statefulsets",
        STATEFULSET_FAMILIES,
        namespaced_lister(api.list_stateful_set_for_all_namespaces, api.list_namespaced_stateful_set),
        namespaces,
        resync_seconds,
    )


def new_replicaset_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.AppsV1Api(api_client)
    return ResourceCollector(
        "replicasets",
        REPLICASET_FAMILIES,
        namespaced_lister(api.list_replica_set_for_all_namespaces, api.list_namespaced_replica_set),
        namespaces,
        resync_seconds,
    )


def new_job_collector(api_client: Any, namespaces: Sequence[str], resync_seconds: float) -> ResourceCollector:
    api = k8s_client.BatchV1Api(api_client)
    return ResourceCollector(
        "jobs",
        JOB_FAMILIES,
        namespaced_lister(api.list_job_for_all_namespaces, api.list_namespaced_job),
        namespaces,
        resync_seconds,
    )
