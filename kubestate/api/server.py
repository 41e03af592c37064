"""uvicorn serving for the kubestate HTTP applications."""

from __future__ import annotations

import structlog
import uvicorn  # type: ignore[import-untyped]
from fastapi import FastAPI

_log = structlog.get_logger(component="api.server")


class ServingError(Exception):
    """Raised when an HTTP server cannot listen on its address."""


def join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def build_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,  # structlog handles all logging
        access_log=False,
    )
    return uvicorn.Server(config)


async def serve(name: str, server: uvicorn.Server) -> None:
    """Run *server* until it exits.

    Raises:
        ServingError: if the server could not start listening.
    """
    address = join_host_port(server.config.host, server.config.port)
    _log.info("starting server", server=name, address=address)
    try:
        await server.serve()
    except SystemExit as exc:
        # uvicorn logs the bind error and calls sys.exit(1).
        raise ServingError(f"{name} server could not listen on {address}") from exc
    if not server.started:
        raise ServingError(f"{name} server did not start on {address}")
    _log.info("server stopped", server=name, address=address)
