"""FastAPI application factories for kubestate.

Usage::

    from kubestate.api.app import create_metrics_app, create_telemetry_app

    main_app = create_metrics_app(business_registry, enable_gzip_encoding=True)
    telemetry_app = create_telemetry_app(telemetry_registry)

Both applications expose a fixed set of routes; nothing is added after
construction.  The factories are used by the production bootstrap
(``kubestate.app``) and by unit tests.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse
from prometheus_client import CollectorRegistry

from kubestate import __version__
from kubestate.api import pprof
from kubestate.api.metrics import HEALTHZ_PATH, METRICS_PATH, landing_page, metrics_router
from kubestate.observability.logging import ErrorLog


def _bare_app(title: str) -> FastAPI:
    return FastAPI(
        title=title,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )


def create_metrics_app(
    registry: CollectorRegistry,
    enable_gzip_encoding: bool = True,
    error_log: ErrorLog | None = None,
) -> FastAPI:
    """Create the main server: business metrics, health check, diagnostics.

    Args:
        registry:             Registry holding only cluster-state collectors.
        enable_gzip_encoding: Compress ``/metrics`` for clients accepting gzip.
        error_log:            Sink for render errors; defaults to the structured log.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    app = _bare_app("kubestate metrics server")
    app.include_router(
        metrics_router(
            registry,
            disable_compression=not enable_gzip_encoding,
            error_log=error_log or ErrorLog("api.metrics"),
        )
    )
    app.include_router(pprof.router)

    @app.get(HEALTHZ_PATH, include_in_schema=False)
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok", status_code=200)

    @app.get("/", include_in_schema=False)
    async def index() -> HTMLResponse:
        return landing_page(
            "Kube Metrics Server",
            "Kube Metrics",
            [(METRICS_PATH, "metrics"), (HEALTHZ_PATH, "healthz")],
        )

    return app


def create_telemetry_app(
    registry: CollectorRegistry,
    enable_gzip_encoding: bool = True,
    error_log: ErrorLog | None = None,
) -> FastAPI:
    """Create the telemetry server exposing the exporter's own metrics."""
    app = _bare_app("kubestate self metrics server")
    app.include_router(
        metrics_router(
            registry,
            disable_compression=not enable_gzip_encoding,
            error_log=error_log or ErrorLog("api.telemetry"),
        )
    )

    @app.get("/", include_in_schema=False)
    async def index() -> HTMLResponse:
        return landing_page(
            "Kube-State-Metrics Metrics Server",
            "Kube-State-Metrics Metrics",
            [(METRICS_PATH, "metrics")],
        )

    return app
