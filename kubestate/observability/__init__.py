"""Logging setup and diagnostic sinks for kubestate."""

from kubestate.observability.logging import ErrorLog, get_logger, setup_logging

__all__ = ["ErrorLog", "get_logger", "setup_logging"]
