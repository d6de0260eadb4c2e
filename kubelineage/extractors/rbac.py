"""Relationship extractors for RBAC roles and bindings."""

from __future__ import annotations

from kubelineage.extractors._fields import maps, nested_list, nested_map, ref, string
from kubelineage.graph.models import Node, ObjectLabelSelector, Relationship, RelationshipMap
from kubelineage.graph.registry import ExtractorError
from kubelineage.graph.selectors import Selector

RBAC_GROUP = "rbac.authorization.k8s.io"


def cluster_role_relationships(node: Node) -> RelationshipMap:
    """Aggregated cluster roles depend on the cluster roles their selectors match."""
    result = RelationshipMap()
    selectors = nested_list(node, "aggregationRule", "clusterRoleSelectors")
    for spec in maps(selectors, "aggregationRule.clusterRoleSelectors"):
        try:
            selector = Selector.from_label_selector(spec)
        except ValueError as exc:
            raise ExtractorError(f"aggregationRule.clusterRoleSelectors: {exc}") from exc
        ols = ObjectLabelSelector(group=RBAC_GROUP, kind="ClusterRole", namespace="", selector=selector)
        result.add_dependency_by_selector(ols, Relationship.CLUSTER_ROLE_AGGREGATION_RULE)
    return result


def _binding_relationships(node: Node, role_rel: Relationship, subject_rel: Relationship) -> RelationshipMap:
    result = RelationshipMap()

    role_ref = nested_map(node, "roleRef")
    kind, name = string(role_ref, "kind"), string(role_ref, "name")
    if kind and name:
        # Role is namespaced; ClusterRole is not, even when bound by a RoleBinding
        namespace = node.namespace if kind == "Role" else ""
        result.add_dependency_by_key(ref(string(role_ref, "apiGroup") or RBAC_GROUP, kind, namespace, name), role_rel)

    for subject in maps(nested_list(node, "subjects"), "subjects"):
        # Users and groups are not API objects
        if string(subject, "kind") != "ServiceAccount":
            continue
        if sa_name := string(subject, "name"):
            namespace = string(subject, "namespace") or node.namespace
            result.add_dependent_by_key(ref("", "ServiceAccount", namespace, sa_name), subject_rel)

    return result


def cluster_role_binding_relationships(node: Node) -> RelationshipMap:
    """Cluster role bindings depend on their role; bound service accounts depend on them."""
    return _binding_relationships(
        node, Relationship.CLUSTER_ROLE_BINDING_ROLE, Relationship.CLUSTER_ROLE_BINDING_SUBJECT
    )


def role_binding_relationships(node: Node) -> RelationshipMap:
    return _binding_relationships(node, Relationship.ROLE_BINDING_ROLE, Relationship.ROLE_BINDING_SUBJECT)
