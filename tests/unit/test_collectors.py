"""Unit tests for resource collectors.

Tests cover: family rendering from snapshots, namespace scoping of list
calls, failed relists, the refresh loop lifecycle, and quantity parsing.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from factories import make_container_status, make_deployment, make_node, make_pod, make_pvc, samples_by_name
from kubestate.collectors.base import ResourceCollector, condition_values
from kubestate.collectors.core import PVC_FAMILIES
from kubestate.collectors.nodes import NODE_FAMILIES, new_node_collector, parse_quantity
from kubestate.collectors.pods import POD_FAMILIES, new_pod_collector
from kubestate.collectors.workloads import DEPLOYMENT_FAMILIES
from kubestate.metrics.telemetry import RESOURCES_PER_SCRAPE, SCRAPE_ERRORS_TOTAL
from kubestate.models.config import ALL_NAMESPACES


def _collector(
    families,
    objects: list | None = None,
    list_fn: AsyncMock | None = None,
    namespaces: tuple[str, ...] = (ALL_NAMESPACES,),
    resource: str = "pods",
    namespaced: bool = True,
) -> ResourceCollector:
    collector = ResourceCollector(
        resource,
        families,
        list_fn or AsyncMock(return_value=[]),
        namespaces,
        resync_seconds=3600,
        namespaced=namespaced,
    )
    if objects is not None:
        collector.replace(objects)
    return collector


def _errors(resource: str) -> float:
    return SCRAPE_ERRORS_TOTAL.labels(resource)._value.get()


# ---------------------------------------------------------------------------
# Pods
# ---------------------------------------------------------------------------


class TestPodFamilies:
    def test_info_labels(self, pod: SimpleNamespace) -> None:
        """kube_pod_info carries the pod's identity and placement labels."""
        samples = samples_by_name(_collector(POD_FAMILIES, [pod]).collect())
        (info,) = samples["kube_pod_info"]
        assert info.labels == {
            "namespace": "default",
            "pod": "my-app-7b4f8c6d-x2kj",
            "host_ip": "10.0.0.10",
            "pod_ip": "172.16.0.5",
            "node": "node-0",
        }
        assert info.value == 1.0

    def test_phase_is_one_hot(self) -> None:
        """Exactly the current phase is set to 1."""
        samples = samples_by_name(_collector(POD_FAMILIES, [make_pod(phase="Pending")]).collect())
        phases = {s.labels["phase"]: s.value for s in samples["kube_pod_status_phase"]}
        assert phases == {"Pending": 1.0, "Succeeded": 0.0, "Failed": 0.0, "Running": 0.0, "Unknown": 0.0}

    def test_ready_condition_expands_to_all_statuses(self) -> None:
        """The Ready condition is emitted once per possible status."""
        samples = samples_by_name(_collector(POD_FAMILIES, [make_pod(ready="False")]).collect())
        ready = {s.labels["condition"]: s.value for s in samples["kube_pod_status_ready"]}
        assert ready == {"true": 0.0, "false": 1.0, "unknown": 0.0}

    def test_container_restarts_are_a_counter(self) -> None:
        """Restarts are exposed as a _total counter sample."""
        pod = make_pod(containers=[make_container_status("app", restart_count=4)])
        families = {f.name: f for f in _collector(POD_FAMILIES, [pod]).collect()}
        restarts = families["kube_pod_container_status_restarts"]
        assert restarts.type == "counter"
        (sample,) = restarts.samples
        assert sample.name == "kube_pod_container_status_restarts_total"
        assert sample.value == 4.0

    def test_waiting_reason(self) -> None:
        """A waiting container reports its reason and is not running."""
        pod = make_pod(containers=[make_container_status("app", ready=False, waiting_reason="CrashLoopBackOff")])
        samples = samples_by_name(_collector(POD_FAMILIES, [pod]).collect())
        (waiting,) = samples["kube_pod_container_status_waiting_reason"]
        assert waiting.labels["reason"] == "CrashLoopBackOff"
        (running,) = samples["kube_pod_container_status_running"]
        assert running.value == 0.0

    def test_pod_without_owner(self, pod: SimpleNamespace) -> None:
        """A pod with no owner references reports <none>."""
        samples = samples_by_name(_collector(POD_FAMILIES, [pod]).collect())
        (owner,) = samples["kube_pod_owner"]
        assert owner.labels["owner_kind"] == "<none>"
        assert owner.labels["owner_is_controller"] == "false"

    def test_pod_with_controller_owner(self) -> None:
        """A controller owner reference is reported with its kind."""
        owner_ref = SimpleNamespace(kind="ReplicaSet", name="my-app-7b4f8c6d", controller=True)
        samples = samples_by_name(_collector(POD_FAMILIES, [make_pod(owners=[owner_ref])]).collect())
        (owner,) = samples["kube_pod_owner"]
        assert owner.labels["owner_kind"] == "ReplicaSet"
        assert owner.labels["owner_is_controller"] == "true"

    def test_empty_snapshot_yields_every_family_without_samples(self) -> None:
        """An empty snapshot still yields every family."""
        families = list(_collector(POD_FAMILIES, []).collect())
        assert len(families) == len(POD_FAMILIES)
        assert all(not f.samples for f in families)

    def test_collect_observes_snapshot_size(self) -> None:
        """Each collect records the snapshot size in telemetry."""
        collector = _collector(POD_FAMILIES, [make_pod("a"), make_pod("b")], resource="pods-size-test")
        list(collector.collect())
        summary = RESOURCES_PER_SCRAPE.labels("pods-size-test")
        assert summary._count.get() == 1
        assert summary._sum.get() == 2.0


# ---------------------------------------------------------------------------
# Other kinds
# ---------------------------------------------------------------------------


class TestOtherFamilies:
    def test_deployment_replicas(self) -> None:
        """Deployment spec and status replica counts are exposed."""
        samples = samples_by_name(_collector(DEPLOYMENT_FAMILIES, [make_deployment(replicas=3)]).collect())
        assert samples["kube_deployment_spec_replicas"][0].value == 3.0
        assert samples["kube_deployment_status_replicas_available"][0].value == 2.0
        assert samples["kube_deployment_spec_paused"][0].value == 0.0
        assert samples["kube_deployment_metadata_generation"][0].value == 2.0

    def test_node_resources_are_parsed(self) -> None:
        """Node capacity and allocatable quantities are parsed to numbers."""
        samples = samples_by_name(_collector(NODE_FAMILIES, [make_node()], namespaced=False).collect())
        assert samples["kube_node_status_capacity_cpu_cores"][0].value == 4.0
        assert samples["kube_node_status_allocatable_cpu_cores"][0].value == pytest.approx(3.8)
        assert samples["kube_node_status_capacity_memory_bytes"][0].value == 8 * 2**30

    def test_node_conditions(self) -> None:
        """Node conditions expand to all three statuses."""
        samples = samples_by_name(_collector(NODE_FAMILIES, [make_node(ready="Unknown")], namespaced=False).collect())
        ready = {
            s.labels["status"]: s.value for s in samples["kube_node_status_condition"] if s.labels["condition"] == "Ready"
        }
        assert ready == {"true": 0.0, "false": 0.0, "unknown": 1.0}

    def test_pvc_requested_storage(self) -> None:
        """PVC storage requests and phase are exposed."""
        samples = samples_by_name(_collector(PVC_FAMILIES, [make_pvc()]).collect())
        assert samples["kube_persistentvolumeclaim_resource_requests_storage_bytes"][0].value == 10 * 2**30
        phases = {s.labels["phase"]: s.value for s in samples["kube_persistentvolumeclaim_status_phase"]}
        assert phases["Pending"] == 1.0

    def test_condition_values(self) -> None:
        """A missing condition status sets no value."""
        assert condition_values("True") == [("true", 1.0), ("false", 0.0), ("unknown", 0.0)]
        assert condition_values(None) == [("true", 0.0), ("false", 0.0), ("unknown", 0.0)]


# ---------------------------------------------------------------------------
# Namespace scoping
# ---------------------------------------------------------------------------


class TestListing:
    async def test_all_namespaces_lists_cluster_wide_once(self) -> None:
        """All namespaces is a single cluster-wide list call."""
        list_fn = AsyncMock(return_value=[make_pod()])
        collector = _collector(POD_FAMILIES, list_fn=list_fn)
        assert await collector.list_objects() == [list_fn.return_value[0]]
        list_fn.assert_awaited_once_with(None)

    async def test_named_namespaces_are_listed_individually(self) -> None:
        """Each named namespace gets its own list call, in order."""
        list_fn = AsyncMock(side_effect=lambda ns: [make_pod(f"pod-{ns}", namespace=ns)])
        collector = _collector(POD_FAMILIES, list_fn=list_fn, namespaces=("default", "monitoring"))
        objects = await collector.list_objects()
        assert [o.metadata.namespace for o in objects] == ["default", "monitoring"]
        assert [c.args for c in list_fn.await_args_list] == [("default",), ("monitoring",)]

    async def test_cluster_scoped_kind_ignores_namespaces(self) -> None:
        """Cluster-scoped kinds list once regardless of namespaces."""
        list_fn = AsyncMock(return_value=[])
        collector = _collector(NODE_FAMILIES, list_fn=list_fn, namespaces=("default",), namespaced=False)
        await collector.list_objects()
        list_fn.assert_awaited_once_with(None)

    async def test_pod_collector_uses_namespaced_list_call(self) -> None:
        """A named namespace uses the namespaced pod list call."""
        api = MagicMock()
        api.list_namespaced_pod = AsyncMock(return_value=SimpleNamespace(items=[make_pod()]))
        api.list_pod_for_all_namespaces = AsyncMock()
        with pytest.MonkeyPatch.context() as mp:
            mp.setattr("kubestate.collectors.pods.k8s_client.CoreV1Api", MagicMock(return_value=api))
            collector = new_pod_collector(MagicMock(), ("kube-system",), 30)
        assert len(await collector.list_objects()) == 1
        api.list_namespaced_pod.assert_awaited_once_with("kube-system")
        api.list_pod_for_all_namespaces.assert_not_called()

    async def test_node_collector_is_cluster_scoped(self) -> None:
        """The node collector is cluster-wide."""
        api = MagicMock()
        api.list_node = AsyncMock(return_value=SimpleNamespace(items=[make_node()]))
        with pytest.MonkeyPatch.context() as mp:
            mp.setattr("kubestate.collectors.nodes.k8s_client.CoreV1Api", MagicMock(return_value=api))
            collector = new_node_collector(MagicMock(), ("default",), 30)
        assert collector.cluster_wide
        assert len(await collector.list_objects()) == 1


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    async def test_successful_refresh_replaces_snapshot(self) -> None:
        """A successful relist replaces the snapshot."""
        collector = _collector(POD_FAMILIES, [make_pod("old")], list_fn=AsyncMock(return_value=[make_pod("new")]))
        assert await collector.refresh() is True
        (info,) = samples_by_name(collector.collect())["kube_pod_info"]
        assert info.labels["pod"] == "new"

    async def test_failed_refresh_keeps_snapshot_and_counts_error(self) -> None:
        """A failed relist keeps the old snapshot and counts the error."""
        list_fn = AsyncMock(side_effect=RuntimeError("connection refused"))
        collector = _collector(POD_FAMILIES, [make_pod("old")], list_fn=list_fn, resource="pods-error-test")
        before = _errors("pods-error-test")
        assert await collector.refresh() is False
        assert _errors("pods-error-test") == before + 1
        (info,) = samples_by_name(collector.collect())["kube_pod_info"]
        assert info.labels["pod"] == "old"

    async def test_start_lists_once_and_stop_cancels_loop(self) -> None:
        """start() lists once and stop() cancels the refresh task."""
        list_fn = AsyncMock(return_value=[make_pod()])
        collector = _collector(POD_FAMILIES, list_fn=list_fn)
        await collector.start()
        try:
            list_fn.assert_awaited_once()
            assert collector._task is not None
            assert collector._task.get_name() == "collector-pods"
        finally:
            await collector.stop()
        assert collector._task is None

    async def test_resync_loop_relists(self) -> None:
        """The refresh task relists on every resync period."""
        list_fn = AsyncMock(return_value=[])
        collector = ResourceCollector("pods", POD_FAMILIES, list_fn, (ALL_NAMESPACES,), resync_seconds=0.01)
        await collector.start()
        try:
            await asyncio.sleep(0.1)
        finally:
            await collector.stop()
        assert list_fn.await_count >= 2


# ---------------------------------------------------------------------------
# Quantities
# ---------------------------------------------------------------------------


class TestParseQuantity:
    @pytest.mark.parametrize(
        ("quantity", "expected"),
        [
            ("4", 4.0),
            ("500m", 0.5),
            ("1k", 1000.0),
            ("1Ki", 1024.0),
            ("8Gi", 8 * 2**30),
            ("1.5G", 1.5e9),
            ("1e3", 1000.0),
            (2, 2.0),
        ],
    )
    def test_valid(self, quantity: str | int, expected: float) -> None:
        """Every supported quantity notation parses to a float."""
        assert parse_quantity(quantity) == pytest.approx(expected)

    @pytest.mark.parametrize("quantity", ["", "Gi", "1Xi", "abc"])
    def test_invalid(self, quantity: str) -> None:
        """Empty or unknown-suffix quantities are rejected."""
        with pytest.raises(ValueError, match="Invalid quantity"):
            parse_quantity(quantity)
