"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

# The empty namespace name selects every namespace, matching the
# Kubernetes API convention for cluster-wide list calls.
ALL_NAMESPACES = ""


@dataclass(frozen=True)
class ServerConfig:
    """Listen address of one HTTP server."""

    host: str = "0.0.0.0"
    port: int = 80


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass(frozen=True)
class ExporterConfig:
    """Top-level kubestate configuration.

    Built once at startup by :func:`kubestate.config.load_config`.  An empty
    ``collectors`` or ``namespaces`` means "not configured"; resolution
    replaces them with the documented defaults.
    """

    apiserver: str = ""
    kubeconfig: str = ""
    collectors: frozenset[str] = frozenset()
    namespaces: tuple[str, ...] = ()
    metric_allowlist: frozenset[str] = frozenset()
    metric_denylist: frozenset[str] = frozenset()
    server: ServerConfig = field(default_factory=ServerConfig)
    telemetry: ServerConfig = field(default_factory=lambda: ServerConfig(port=81))
    enable_gzip_encoding: bool = True
    resync_seconds: int = 60
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def all_namespaces(self) -> bool:
        return not self.namespaces or ALL_NAMESPACES in self.namespaces

    @property
    def filter_mode(self) -> str:
        if self.metric_allowlist:
            return "allowlist"
        if self.metric_denylist:
            return "denylist"
        return "none"
