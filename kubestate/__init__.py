"""kubestate: Kubernetes cluster-state metrics exporter."""

__version__ = "0.1.0"
