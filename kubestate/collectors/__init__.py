"""Resource collectors for kubestate.

Each collector keeps a periodically relisted snapshot of one Kubernetes
resource kind and renders it as Prometheus metric families.

Submodules
----------
base      -- ResourceCollector and the FamilyGenerator building blocks.
builder   -- Builder: assembles the enabled collectors for a namespace scope.
pods      -- Pod families.
workloads -- Deployment, DaemonSet, StatefulSet, ReplicaSet and Job families.
nodes     -- Node families and resource quantity parsing.
core      -- Namespace, Service, ConfigMap, Secret and PVC families.
"""

from kubestate.collectors.base import FamilyGenerator, ResourceCollector
from kubestate.collectors.builder import AVAILABLE_COLLECTORS, Builder, BuilderError

__all__ = [
    "AVAILABLE_COLLECTORS",
    "Builder",
    "BuilderError",
    "FamilyGenerator",
    "ResourceCollector",
]
