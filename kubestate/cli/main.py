"""Command-line entry point.

Every option mirrors a ``KUBESTATE_*`` environment variable; options given
on the command line take precedence over the environment.
"""

from __future__ import annotations

import asyncio
from typing import Any

import click

from kubestate.app import main
from kubestate.version import get_version


def _as_env(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_overrides(options: dict[str, Any]) -> dict[str, str]:
    """Map click option names to environment keys, dropping unset options."""
    return {key.upper(): _as_env(value) for key, value in options.items() if value is not None}


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--apiserver", help="The URL of the apiserver to use as a master.")
@click.option("--kubeconfig", help="Absolute path to the kubeconfig file.")
@click.option("--collectors", help="Comma-separated list of collectors to be enabled.")
@click.option("--namespaces", help="Comma-separated list of namespaces to be enabled. Defaults to all.")
@click.option("--metric-whitelist", help="Comma-separated list of metrics to be exposed.")
@click.option("--metric-blacklist", help="Comma-separated list of metrics not to be exposed.")
@click.option("--host", help="Host to expose metrics on.")
@click.option("--port", type=int, help="Port to expose metrics on.")
@click.option("--telemetry-host", help="Host to expose kubestate self metrics on.")
@click.option("--telemetry-port", type=int, help="Port to expose kubestate self metrics on.")
@click.option(
    "--enable-gzip-encoding/--disable-gzip-encoding",
    default=None,
    help="Gzip responses when requested by clients via 'Accept-Encoding: gzip' header.",
)
@click.option("--resync-seconds", type=int, help="Seconds between two relists of each resource.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level.",
)
@click.option("--version", "show_version", is_flag=True, help="kubestate build version information.")
def cli(show_version: bool, **options: Any) -> None:
    """Expose Kubernetes cluster state as Prometheus metrics."""
    if show_version:
        click.echo(repr(get_version()))
        return
    asyncio.run(main(build_overrides(options)))
