"""Object relationship graph.

Resolves the transitive set of objects depending on a root object from owner
references and per-kind relationship declarations (references, UIDs and
label selectors).
"""

from kubelineage.graph.models import (
    Node,
    NodeMap,
    ObjectLabelSelector,
    ObjectReference,
    OwnerReference,
    Relationship,
    RelationshipMap,
    RelationshipSet,
    ResolutionStats,
    sorted_relationships,
)
from kubelineage.graph.registry import Extractor, ExtractorError, ExtractorRegistry
from kubelineage.graph.resolver import ResolvedGraph, build_graph, resolve_dependents
from kubelineage.graph.selectors import Operator, Requirement, Selector

__all__ = [
    "Extractor",
    "ExtractorError",
    "ExtractorRegistry",
    "Node",
    "NodeMap",
    "ObjectLabelSelector",
    "ObjectReference",
    "Operator",
    "OwnerReference",
    "Relationship",
    "RelationshipMap",
    "RelationshipSet",
    "Requirement",
    "ResolutionStats",
    "ResolvedGraph",
    "Selector",
    "build_graph",
    "resolve_dependents",
    "sorted_relationships",
]
