"""Relationship extractors for Ingress and IngressClass."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kubelineage.extractors._fields import maps, nested_list, nested_map, ref, string
from kubelineage.graph.models import Node, Relationship, RelationshipMap


def _backend(result: RelationshipMap, namespace: str, backend: Mapping[str, Any]) -> None:
    # networking.k8s.io/v1 uses service.name; extensions/v1beta1 uses serviceName
    service = string(backend, "service", "name") or string(backend, "serviceName")
    if service:
        result.add_dependency_by_key(ref("", "Service", namespace, service), Relationship.INGRESS_SERVICE)
    resource = backend.get("resource")
    if isinstance(resource, Mapping):
        kind, name = string(resource, "kind"), string(resource, "name")
        if kind and name:
            result.add_dependency_by_key(
                ref(string(resource, "apiGroup"), kind, namespace, name), Relationship.INGRESS_RESOURCE
            )


def ingress_relationships(node: Node) -> RelationshipMap:
    """Ingresses depend on their class, backends and TLS secrets."""
    result = RelationshipMap()
    ns = node.namespace

    ingress_class = node.get_nested_string("spec", "ingressClassName") or node.get_nested_string(
        "metadata", "annotations", "kubernetes.io/ingress.class"
    )
    if ingress_class:
        result.add_dependency_by_key(
            ref("networking.k8s.io", "IngressClass", "", ingress_class), Relationship.INGRESS_CLASS
        )

    default_backend = nested_map(node, "spec", "defaultBackend") or nested_map(node, "spec", "backend")
    _backend(result, ns, default_backend)

    for rule in maps(nested_list(node, "spec", "rules"), "spec.rules"):
        http = rule.get("http")
        if not isinstance(http, Mapping):
            continue
        paths = http.get("paths")
        if not isinstance(paths, list):
            continue
        for path in maps(paths, "spec.rules[].http.paths"):
            backend = path.get("backend")
            if isinstance(backend, Mapping):
                _backend(result, ns, backend)

    for tls in maps(nested_list(node, "spec", "tls"), "spec.tls"):
        if secret := string(tls, "secretName"):
            result.add_dependency_by_key(ref("", "Secret", ns, secret), Relationship.INGRESS_TLS_SECRET)

    return result


def ingress_class_relationships(node: Node) -> RelationshipMap:
    result = RelationshipMap()
    params = nested_map(node, "spec", "parameters")
    kind, name = string(params, "kind"), string(params, "name")
    if kind and name:
        # Cluster-scoped parameters unless scope is Namespace
        namespace = string(params, "namespace") if string(params, "scope") == "Namespace" else ""
        result.add_dependency_by_key(
            ref(string(params, "apiGroup"), kind, namespace, name), Relationship.INGRESS_CLASS_PARAMETERS
        )
    return result
