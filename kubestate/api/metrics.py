"""Metrics exposition handlers.

Renders a registry the way ``prometheus_client``'s own HTTP handlers do:
the exposition format is negotiated from ``Accept``, ``name[]`` query
parameters restrict the output to the named families, and the body is
gzip-compressed when the client accepts it and compression is enabled.
"""

from __future__ import annotations

import gzip

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from kubestate.observability.logging import ErrorLog

METRICS_PATH = "/metrics"
HEALTHZ_PATH = "/healthz"


def render_metrics(
    registry: CollectorRegistry,
    request: Request,
    *,
    disable_compression: bool,
    error_log: ErrorLog,
) -> Response:
    """Gather *registry* and encode it for *request*.

    Gather and encode failures are reported to *error_log* and answered with
    a 500; they never affect other requests.
    """
    encoder, content_type = choose_encoder(request.headers.get("accept", ""))
    names = request.query_params.getlist("name[]")
    if names:
        registry = registry.restricted_registry(names)

    try:
        output = encoder(registry)
    except Exception as exc:
        error_log.println("error gathering metrics:", exc)
        return PlainTextResponse(f"An error has occurred while serving metrics:\n\n{exc}", status_code=500)

    headers = {}
    if not disable_compression and "gzip" in request.headers.get("accept-encoding", ""):
        output = gzip.compress(output)
        headers["Content-Encoding"] = "gzip"
    return Response(content=output, media_type=content_type, headers=headers)


def metrics_router(registry: CollectorRegistry, *, disable_compression: bool, error_log: ErrorLog) -> APIRouter:
    router = APIRouter()

    @router.get(METRICS_PATH, include_in_schema=False)
    def metrics(request: Request) -> Response:
        # Sync route: the gather runs in the threadpool, off the event loop.
        return render_metrics(
            registry,
            request,
            disable_compression=disable_compression,
            error_log=error_log,
        )

    return router


def landing_page(title: str, heading: str, links: list[tuple[str, str]]) -> HTMLResponse:
    items = "\n".join(f"             <li><a href='{href}'>{text}</a></li>" for href, text in links)
    return HTMLResponse(
        f"""<html>
             <head><title>{title}</title></head>
             <body>
             <h1>{heading}</h1>
             <ul>
{items}
             </ul>
             </body>
             </html>"""
    )
