"""Entry point for `python -m kubestate`.

Usage:
    python -m kubestate --help
    uv run python -m kubestate --port 8080 --telemetry-port 8081
"""

from __future__ import annotations

from kubestate.cli.main import cli

cli()
