"""Kubernetes API client bootstrap.

Builds the single :class:`kubernetes_asyncio.client.ApiClient` shared by all
collectors and verifies that the API server answers before anything else is
started.  Collectors only surface list failures inside their refresh loops,
which makes a misconfigured apiserver hard to spot; checking the server
version up front turns that into one early fatal error.
"""

from __future__ import annotations

import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]

from kubestate.version import get_version

_log = structlog.get_logger(component="kube.client")

# kubernetes-asyncio only decodes JSON responses.
ACCEPT_CONTENT_TYPES = "application/json"


class ClientBootstrapError(Exception):
    """Raised when the API client cannot be built or the server is unreachable."""


async def build_configuration(apiserver: str = "", kubeconfig: str = "") -> k8s_client.Configuration:
    """Build client configuration from an explicit kubeconfig or the environment.

    Resolution order:
        * ``kubeconfig`` given: load that file.
        * neither given: in-cluster service account, then the default kubeconfig.
        * only ``apiserver`` given: no credentials are loaded.

    A non-empty ``apiserver`` always overrides the host.
    """
    configuration = k8s_client.Configuration()
    if kubeconfig:
        await k8s_config.load_kube_config(config_file=kubeconfig, client_configuration=configuration)
        _log.info("k8s client configured from kubeconfig", kubeconfig=kubeconfig)
    elif not apiserver:
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
            _log.info("k8s client configured from in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config(client_configuration=configuration)
            _log.info("k8s client configured from default kubeconfig")
    else:
        _log.info("k8s client configured for apiserver without credentials", apiserver=apiserver)

    if apiserver:
        configuration.host = apiserver
    return configuration


async def create_client(apiserver: str = "", kubeconfig: str = "") -> k8s_client.ApiClient:
    """Create the shared API client and verify connectivity.

    Raises:
        ClientBootstrapError: if the configuration cannot be loaded or the
            version query against the API server fails.  Never retried.
    """
    try:
        configuration = await build_configuration(apiserver, kubeconfig)
    except Exception as exc:
        raise ClientBootstrapError(f"error loading client configuration: {exc}") from exc

    api_client = k8s_client.ApiClient(configuration=configuration)
    api_client.user_agent = str(get_version())
    api_client.set_default_header("Accept", ACCEPT_CONTENT_TYPES)

    _log.info("testing communication with server", host=configuration.host)
    try:
        info = await k8s_client.VersionApi(api_client).get_code()
    except Exception as exc:
        await api_client.close()
        raise ClientBootstrapError(f"error communicating with apiserver: {exc}") from exc

    _log.info(
        "running with kubernetes cluster version",
        version=f"v{info.major}.{info.minor}",
        git_version=info.git_version,
        git_tree_state=info.git_tree_state,
        commit=info.git_commit,
        platform=info.platform,
    )
    _log.info("communication with server successful")
    return api_client
