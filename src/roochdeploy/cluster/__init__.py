"""Kubernetes cluster access for roochdeploy."""

from roochdeploy.cluster.client import ClusterClient, load_cluster_config

__all__ = ["ClusterClient", "load_cluster_config"]
