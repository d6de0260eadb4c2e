"""kubelineage: resolve the objects that depend on a Kubernetes object."""

from kubelineage.graph import ExtractorRegistry, Node, NodeMap, ResolvedGraph, build_graph, resolve_dependents

__version__ = "0.1.0"

__all__ = [
    "ExtractorRegistry",
    "Node",
    "NodeMap",
    "ResolvedGraph",
    "__version__",
    "build_graph",
    "resolve_dependents",
]
