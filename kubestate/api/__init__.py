"""HTTP layer for kubestate.

Exposes:
    create_metrics_app   -- main server: /metrics, /healthz, /debug/pprof/, /.
    create_telemetry_app -- telemetry server: /metrics, /.
    build_server         -- wraps an application in a uvicorn server.
    serve                -- runs a uvicorn server, raising ServingError on bind failure.
"""

from kubestate.api.app import create_metrics_app, create_telemetry_app
from kubestate.api.server import ServingError, build_server, serve

__all__ = [
    "ServingError",
    "build_server",
    "create_metrics_app",
    "create_telemetry_app",
    "serve",
]
