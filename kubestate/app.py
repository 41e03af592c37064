"""Application bootstrap for kubestate.

Wires all components in dependency order:
    config → logging → filter validation → K8s client → collectors
           → registries → collector snapshots → telemetry server → metrics server

Every fatal condition is raised before either HTTP listener opens, so an
operator never sees a half-started exporter.  The telemetry server runs as a
background task that is never joined; the metrics server runs in the calling
task until the process is told to stop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from kubestate.api import ServingError, build_server, create_metrics_app, create_telemetry_app, serve
from kubestate.collectors import Builder, BuilderError, ResourceCollector
from kubestate.config import ConfigError, read_config, resolve_config
from kubestate.kube.client import ClientBootstrapError, create_client
from kubestate.metrics import DuplicateCollectorError, MetricsRegistry, new_business_registry, new_telemetry_registry
from kubestate.models.config import ExporterConfig
from kubestate.observability.logging import ErrorLog, get_logger, setup_logging
from kubestate.reaper import start_reaper
from kubestate.version import get_version

if TYPE_CHECKING:
    import structlog
    import uvicorn  # type: ignore[import-untyped]


class _StartupError(Exception):
    """Raised when the exporter cannot start.  Always fatal."""

    def __init__(self, component: str, prefix: str, cause: Exception) -> None:
        super().__init__(f"{prefix}: {cause}")
        self.component = component
        self.prefix = prefix
        self.cause = cause


class ExporterApp:
    """Application root.  Owns the client, collectors, registries and servers.

    Args:
        config:    Unresolved configuration.  When omitted it is read from the
                   environment with *overrides* applied.
        overrides: Raw setting overrides, see :func:`kubestate.config.read_config`.
    """

    def __init__(self, config: ExporterConfig | None = None, overrides: Mapping[str, str] | None = None) -> None:
        self._raw_config = config
        self._overrides = overrides
        self.config: ExporterConfig | None = None

        self._api_client: Any = None
        self.collectors: list[ResourceCollector] = []
        self.business_registry: MetricsRegistry | None = None
        self.telemetry_registry: MetricsRegistry | None = None

        self._metrics_server: uvicorn.Server | None = None
        self._telemetry_server: uvicorn.Server | None = None
        self._telemetry_task: asyncio.Task[None] | None = None
        self._fatal: _StartupError | None = None

        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Build every component short of opening the listeners.

        Raises _StartupError on the first failure; the caller (main())
        turns it into a non-zero exit.
        """
        # --- 1. Configuration and logging --------------------------------
        self._start_config()
        assert self.config is not None
        assert self._log is not None

        # --- 2. Kubernetes client -----------------------------------------
        try:
            self._api_client = await create_client(self.config.apiserver, self.config.kubeconfig)
        except ClientBootstrapError as exc:
            raise _StartupError("client", "failed to create client", exc) from exc

        # --- 3. Collectors --------------------------------------------------
        try:
            self.collectors = (
                Builder()
                .with_enabled_collectors(self.config.collectors)
                .with_namespaces(self.config.namespaces)
                .with_client(self._api_client)
                .with_resync_seconds(self.config.resync_seconds)
                .build()
            )
        except BuilderError as exc:
            raise _StartupError("collectors", "failed to assemble collectors", exc) from exc

        # --- 4. Registries ----------------------------------------------------
        try:
            self.telemetry_registry = new_telemetry_registry()
            self.business_registry = new_business_registry(self.collectors)
        except DuplicateCollectorError as exc:
            raise _StartupError("registry", "failed to register collectors", exc) from exc

        # --- 5. Initial snapshots -----------------------------------------
        await asyncio.gather(*(collector.start() for collector in self.collectors))
        self._log.info("collectors started", count=len(self.collectors))

        # --- 6. HTTP servers --------------------------------------------------
        self._telemetry_server = build_server(
            create_telemetry_app(
                self.telemetry_registry,
                enable_gzip_encoding=self.config.enable_gzip_encoding,
                error_log=ErrorLog("api.telemetry"),
            ),
            self.config.telemetry.host,
            self.config.telemetry.port,
        )
        self._metrics_server = build_server(
            create_metrics_app(
                self.business_registry,
                enable_gzip_encoding=self.config.enable_gzip_encoding,
                error_log=ErrorLog("api.metrics"),
            ),
            self.config.server.host,
            self.config.server.port,
        )

    def _start_config(self) -> None:
        # Malformed settings must still be reported through the JSON sink.
        setup_logging()
        try:
            raw = self._raw_config if self._raw_config is not None else read_config(self._overrides)
            setup_logging(raw.log.level)
            self._log = get_logger("app")
            self._log.info("kubestate starting", version=str(get_version()))
            self.config = resolve_config(raw)
        except ConfigError as exc:
            raise _StartupError("config", "invalid configuration", exc) from exc

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Start everything and serve until the metrics server exits."""
        await self.start()
        assert self._metrics_server is not None
        assert self._telemetry_server is not None

        self._telemetry_task = asyncio.create_task(
            serve("telemetry", self._telemetry_server), name="telemetry-server"
        )
        self._telemetry_task.add_done_callback(self._on_telemetry_exit)

        try:
            await serve("metrics", self._metrics_server)
        except ServingError as exc:
            raise _StartupError("metrics_server", "failed to serve", exc) from exc
        if self._fatal is not None:
            raise self._fatal

    def _on_telemetry_exit(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        exc = task.exception()
        assert isinstance(exc, Exception)
        self._fatal = _StartupError("telemetry_server", "failed to serve", exc)
        # Bring the metrics server down so run() can surface the failure.
        if self._metrics_server is not None:
            self._metrics_server.should_exit = True

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop collector refresh loops and release the API client."""
        for collector in self.collectors:
            await collector.stop()
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(overrides: Mapping[str, str] | None = None) -> None:
    """Run the exporter; exit with status 1 on any fatal startup error."""
    start_reaper(asyncio.get_running_loop())
    app = ExporterApp(overrides=overrides)
    try:
        await app.run()
    except _StartupError as exc:
        log = get_logger("app")
        log.critical(exc.prefix, component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        await app.stop()
