"""Unit tests for the main and telemetry HTTP applications.

Tests cover: health check, landing pages, /metrics rendering and gzip
negotiation, render failures, registry isolation, and the /debug/pprof
diagnostics.
"""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from prometheus_client.metrics_core import Metric
from prometheus_client.parser import text_string_to_metric_families
from prometheus_client.registry import Collector

from factories import make_node, make_pod
from kubestate.api.app import create_metrics_app, create_telemetry_app
from kubestate.collectors.base import ResourceCollector
from kubestate.collectors.nodes import NODE_FAMILIES
from kubestate.collectors.pods import POD_FAMILIES
from kubestate.metrics import new_business_registry, new_telemetry_registry
from kubestate.models.config import ALL_NAMESPACES
from kubestate.observability.logging import ErrorLog

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class _FailingCollector(Collector):
    def describe(self) -> list[Metric]:
        return []

    def collect(self) -> Iterator[Metric]:
        raise RuntimeError("collected metric kube_pod_info was collected before with the same name")


def _snapshot_collector(resource: str, families, objects: list) -> ResourceCollector:
    async def _never(_namespace: str | None) -> list:
        return []

    collector = ResourceCollector(resource, families, _never, (ALL_NAMESPACES,), namespaced=resource != "nodes")
    collector.replace(objects)
    return collector


def _metrics_client(enable_gzip_encoding: bool = True, error_log: ErrorLog | None = None) -> TestClient:
    registry = new_business_registry(
        [
            _snapshot_collector("pods", POD_FAMILIES, [make_pod()]),
            _snapshot_collector("nodes", NODE_FAMILIES, [make_node()]),
        ]
    )
    return TestClient(create_metrics_app(registry, enable_gzip_encoding=enable_gzip_encoding, error_log=error_log))


def _telemetry_client() -> TestClient:
    return TestClient(create_telemetry_app(new_telemetry_registry()))


def _sample_labels(body: str) -> dict[str, list[dict[str, str]]]:
    """Parse a text exposition body into sample name -> label sets."""
    out: dict[str, list[dict[str, str]]] = {}
    for family in text_string_to_metric_families(body):
        for sample in family.samples:
            out.setdefault(sample.name, []).append(dict(sample.labels))
    return out


@pytest.fixture()
def client() -> TestClient:
    return _metrics_client()


# ---------------------------------------------------------------------------
# Health and landing pages
# ---------------------------------------------------------------------------


class TestHealthz:
    def test_returns_ok(self, client: TestClient) -> None:
        """GET /healthz answers 200 with a plain ok."""
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.text == "ok"

    def test_not_on_telemetry_server(self) -> None:
        """The health check lives on the main server only."""
        assert _telemetry_client().get("/healthz").status_code == 404


class TestLandingPages:
    def test_main_landing_page(self, client: TestClient) -> None:
        """The main landing page links to metrics and healthz."""
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "<title>Kube Metrics Server</title>" in resp.text
        assert "href='/metrics'" in resp.text
        assert "href='/healthz'" in resp.text

    def test_telemetry_landing_page(self) -> None:
        """The telemetry landing page links to its metrics only."""
        resp = _telemetry_client().get("/")
        assert resp.status_code == 200
        assert "<title>Kube-State-Metrics Metrics Server</title>" in resp.text
        assert "href='/metrics'" in resp.text
        assert "healthz" not in resp.text

    def test_api_docs_are_disabled(self, client: TestClient) -> None:
        """FastAPI's generated docs are not exposed."""
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404


# ---------------------------------------------------------------------------
# /metrics
# ---------------------------------------------------------------------------


class TestMetricsEndpoint:
    def test_serves_cluster_state_families(self, client: TestClient) -> None:
        """Snapshot objects are rendered as labelled samples."""
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        samples = _sample_labels(resp.text)
        assert samples["kube_pod_info"] == [
            {
                "namespace": "default",
                "pod": "my-app-7b4f8c6d-x2kj",
                "host_ip": "10.0.0.10",
                "pod_ip": "172.16.0.5",
                "node": "node-0",
            }
        ]
        assert samples["kube_node_status_capacity_cpu_cores"] == [{"node": "node-0"}]

    def test_main_registry_has_no_runtime_families(self, client: TestClient) -> None:
        """Runtime and operational metrics stay off the main endpoint."""
        body = client.get("/metrics").text
        assert "process_" not in body
        assert "python_info" not in body
        assert "ksm_" not in body

    def test_telemetry_registry_has_no_cluster_state(self) -> None:
        """The telemetry endpoint never exposes kube_ families."""
        body = _telemetry_client().get("/metrics").text
        assert "python_info" in body
        assert "ksm_resources_per_scrape" in body
        assert "kube_" not in body

    def test_name_filter_restricts_output(self, client: TestClient) -> None:
        """name[] query parameters limit the families rendered."""
        body = client.get("/metrics", params={"name[]": "kube_node_created"}).text
        assert "kube_node_created" in body
        assert "kube_pod_info" not in body

    def test_openmetrics_negotiation(self, client: TestClient) -> None:
        """An OpenMetrics Accept header selects the OpenMetrics encoder."""
        resp = client.get("/metrics", headers={"Accept": "application/openmetrics-text; version=1.0.0"})
        assert resp.headers["content-type"].startswith("application/openmetrics-text")
        assert resp.text.rstrip().endswith("# EOF")


class TestCompression:
    def test_gzip_when_accepted(self, client: TestClient) -> None:
        """Clients accepting gzip get a compressed body."""
        resp = client.get("/metrics", headers={"Accept-Encoding": "gzip"})
        assert resp.status_code == 200
        assert resp.headers["content-encoding"] == "gzip"
        assert "kube_pod_info" in resp.text

    def test_identity_when_gzip_not_accepted(self, client: TestClient) -> None:
        """Clients not accepting gzip get the plain body."""
        resp = client.get("/metrics", headers={"Accept-Encoding": "identity"})
        assert "content-encoding" not in resp.headers
        assert "kube_pod_info" in resp.text

    def test_identity_when_disabled(self) -> None:
        """Disabling gzip encoding wins over the client's Accept-Encoding."""
        resp = _metrics_client(enable_gzip_encoding=False).get("/metrics", headers={"Accept-Encoding": "gzip"})
        assert "content-encoding" not in resp.headers
        assert "kube_pod_info" in resp.text

    def test_telemetry_server_compresses(self) -> None:
        """The telemetry endpoint honours gzip as well."""
        resp = _telemetry_client().get("/metrics", headers={"Accept-Encoding": "gzip"})
        assert resp.headers["content-encoding"] == "gzip"
        assert "python_info" in resp.text


class TestRenderErrors:
    def test_gather_failure_returns_500_and_logs(self) -> None:
        """A gather error answers 500 and is reported to the error log."""
        error_log = MagicMock(spec=ErrorLog)
        app = create_metrics_app(new_business_registry([_FailingCollector()]), error_log=error_log)
        resp = TestClient(app).get("/metrics")
        assert resp.status_code == 500
        assert resp.text.startswith("An error has occurred while serving metrics:\n\n")
        assert "was collected before with the same name" in resp.text
        error_log.println.assert_called_once()
        assert error_log.println.call_args.args[0] == "error gathering metrics:"

    def test_failure_does_not_break_other_routes(self) -> None:
        """A failed scrape leaves the health check working."""
        app = create_metrics_app(new_business_registry([_FailingCollector()]), error_log=MagicMock(spec=ErrorLog))
        client = TestClient(app)
        client.get("/metrics")
        assert client.get("/healthz").text == "ok"


# ---------------------------------------------------------------------------
# /debug/pprof
# ---------------------------------------------------------------------------


class TestPprof:
    def test_index_lists_profiles(self, client: TestClient) -> None:
        """The index links every available profile."""
        resp = client.get("/debug/pprof/")
        assert resp.status_code == 200
        for name in ("cmdline", "profile", "threads", "tasks", "heap"):
            assert f"href='{name}'" in resp.text

    def test_cmdline(self, client: TestClient) -> None:
        """cmdline returns the process arguments."""
        resp = client.get("/debug/pprof/cmdline")
        assert resp.status_code == 200
        assert resp.text

    def test_threads(self, client: TestClient) -> None:
        """threads dumps one stack per thread."""
        resp = client.get("/debug/pprof/threads")
        assert resp.status_code == 200
        assert "Thread " in resp.text

    def test_tasks(self, client: TestClient) -> None:
        """tasks dumps the asyncio task stacks."""
        assert client.get("/debug/pprof/tasks").status_code == 200

    def test_heap(self, client: TestClient) -> None:
        """heap reports allocation sites or live object counts."""
        resp = client.get("/debug/pprof/heap", params={"limit": 5})
        assert resp.status_code == 200
        assert resp.text

    def test_profile_short_run(self, client: TestClient) -> None:
        """profile returns pstats output for the requested duration."""
        resp = client.get("/debug/pprof/profile", params={"seconds": 1, "limit": 5})
        assert resp.status_code == 200
        assert "function calls" in resp.text

    def test_profile_rejects_out_of_range_duration(self, client: TestClient) -> None:
        """A zero-second profile is a validation error."""
        assert client.get("/debug/pprof/profile", params={"seconds": 0}).status_code == 422

    def test_not_on_telemetry_server(self) -> None:
        """Diagnostics live on the main server only."""
        assert _telemetry_client().get("/debug/pprof/cmdline").status_code == 404
