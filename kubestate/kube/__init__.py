"""Kubernetes API access for kubestate."""

from kubestate.kube.client import ClientBootstrapError, create_client

__all__ = ["ClientBootstrapError", "create_client"]
