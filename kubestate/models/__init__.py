"""Core data structures for kubestate."""

from kubestate.models.config import ALL_NAMESPACES, ExporterConfig, LogConfig, ServerConfig

__all__ = [
    "ALL_NAMESPACES",
    "ExporterConfig",
    "LogConfig",
    "ServerConfig",
]
