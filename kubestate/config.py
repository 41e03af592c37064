"""Configuration loading and resolution.

Settings come from ``KUBESTATE_*`` environment variables, with command-line
overrides taking precedence.  :func:`resolve_config` then fills in the
documented defaults and enforces the metric filter invariant.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace

import structlog

from kubestate.models.config import (
    ALL_NAMESPACES,
    ExporterConfig,
    LogConfig,
    ServerConfig,
)

_log = structlog.get_logger(component="config")

# Collectors enabled when none are requested.  Secrets are opt-in because
# their metadata can leak names operators consider sensitive.
DEFAULT_COLLECTORS: frozenset[str] = frozenset(
    {
        "configmaps",
        "daemonsets",
        "deployments",
        "jobs",
        "namespaces",
        "nodes",
        "persistentvolumeclaims",
        "pods",
        "replicasets",
        "services",
        "statefulsets",
    }
)

DEFAULT_NAMESPACES: tuple[str, ...] = (ALL_NAMESPACES,)


class ConfigError(ValueError):
    """Raised when the configuration is invalid.  Always fatal at startup."""


def _env(key: str, default: str = "", overrides: Mapping[str, str] | None = None) -> str:
    if overrides is not None and overrides.get(key) is not None:
        return overrides[key]
    return os.environ.get(f"KUBESTATE_{key}", default)


def _env_bool(key: str, default: bool, overrides: Mapping[str, str] | None) -> bool:
    val = _env(key, str(default).lower(), overrides)
    return val.lower() in ("true", "1", "yes")


def _env_int(
    key: str,
    default: int,
    overrides: Mapping[str, str] | None,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    raw = _env(key, str(default), overrides)
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {key}: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_list(key: str, overrides: Mapping[str, str] | None) -> list[str]:
    raw = _env(key, "", overrides)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _validate_port(key: str, value: int) -> int:
    if not 1 <= value <= 65535:
        raise ConfigError(f"Invalid port for {key}: {value}. Must be in 1..65535")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def read_config(overrides: Mapping[str, str] | None = None) -> ExporterConfig:
    """Read configuration from KUBESTATE_* variables without resolving defaults.

    Args:
        overrides: Raw values keyed by variable name without the prefix
                   (e.g. ``{"PORT": "8080"}``).  ``None`` values are ignored.

    Raises:
        ConfigError: on malformed values.
    """
    return ExporterConfig(
        apiserver=_env("APISERVER", "", overrides),
        kubeconfig=_env("KUBECONFIG", "", overrides),
        collectors=frozenset(name.lower() for name in _env_list("COLLECTORS", overrides)),
        namespaces=tuple(_env_list("NAMESPACES", overrides)),
        metric_allowlist=frozenset(_env_list("METRIC_WHITELIST", overrides)),
        metric_denylist=frozenset(_env_list("METRIC_BLACKLIST", overrides)),
        server=ServerConfig(
            host=_env("HOST", "0.0.0.0", overrides),
            port=_validate_port("PORT", _env_int("PORT", 80, overrides)),
        ),
        telemetry=ServerConfig(
            host=_env("TELEMETRY_HOST", "0.0.0.0", overrides),
            port=_validate_port("TELEMETRY_PORT", _env_int("TELEMETRY_PORT", 81, overrides)),
        ),
        enable_gzip_encoding=_env_bool("ENABLE_GZIP_ENCODING", True, overrides),
        resync_seconds=_env_int("RESYNC_SECONDS", 60, overrides, min_val=5, max_val=3600),
        log=LogConfig(level=_validate_log_level(_env("LOG_LEVEL", "info", overrides))),
    )


def load_config(overrides: Mapping[str, str] | None = None) -> ExporterConfig:
    """Read and resolve the configuration.

    Raises:
        ConfigError: on malformed values or mutually exclusive filters.
    """
    return resolve_config(read_config(overrides))


def resolve_config(config: ExporterConfig) -> ExporterConfig:
    """Fill in default collectors and namespaces and validate metric filters.

    The returned config always has a non-empty collector set and a non-empty
    namespace scope; ``(ALL_NAMESPACES,)`` stands for every namespace.
    """
    validate_metric_filters(config)

    if not config.collectors:
        _log.info("using default collectors", collectors=sorted(DEFAULT_COLLECTORS))
        collectors = DEFAULT_COLLECTORS
    else:
        _log.info("using collectors", collectors=sorted(config.collectors))
        collectors = config.collectors

    if not config.namespaces:
        _log.info("using all namespaces")
        namespaces = DEFAULT_NAMESPACES
    elif ALL_NAMESPACES in config.namespaces:
        _log.info("using all namespaces (requested explicitly)")
        namespaces = DEFAULT_NAMESPACES
    else:
        namespaces = tuple(dict.fromkeys(config.namespaces))
        _log.info("using namespaces", namespaces=list(namespaces))

    return replace(config, collectors=collectors, namespaces=namespaces)


def validate_metric_filters(config: ExporterConfig) -> None:
    """Enforce that at most one of the metric allow-list and deny-list is set.

    Raises:
        ConfigError: when both lists are non-empty.
    """
    if config.metric_allowlist and config.metric_denylist:
        raise ConfigError(
            "Whitelist and blacklist are both set. They are mutually exclusive, only one of them can be set."
        )
    if config.filter_mode == "allowlist":
        _log.info(
            "metric whitelist configured",
            metrics=sorted(config.metric_allowlist),
            enforced=False,
        )
    elif config.filter_mode == "denylist":
        _log.info(
            "metric blacklist configured",
            metrics=sorted(config.metric_denylist),
            enforced=False,
        )
    else:
        _log.info("no metric whitelist or blacklist set; no filtering of metrics will be done")
