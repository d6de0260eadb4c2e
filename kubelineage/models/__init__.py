"""Configuration data structures for kubelineage."""

from kubelineage.models.config import KubeLineageConfig, LogConfig, ResolverConfig

__all__ = [
    "KubeLineageConfig",
    "LogConfig",
    "ResolverConfig",
]
