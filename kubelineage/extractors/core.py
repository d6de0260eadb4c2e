"""Relationship extractors for core (group "") kinds."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kubelineage.extractors._fields import api_group, maps, nested_list, nested_map, ref, string
from kubelineage.graph.models import Node, ObjectLabelSelector, Relationship, RelationshipMap
from kubelineage.graph.registry import ExtractorError
from kubelineage.graph.selectors import Selector

_CONTAINER_FIELDS = ("initContainers", "containers", "ephemeralContainers")

_CSI_SECRET_FIELDS = (
    "controllerExpandSecretRef",
    "controllerPublishSecretRef",
    "nodeExpandSecretRef",
    "nodePublishSecretRef",
    "nodeStageSecretRef",
)


def pod_relationships(node: Node) -> RelationshipMap:
    """Pods depend on their volumes, env sources, pull secrets, node and classes."""
    result = RelationshipMap()
    ns = node.namespace

    def configmap(name: str, relationship: Relationship) -> None:
        if name:
            result.add_dependency_by_key(ref("", "ConfigMap", ns, name), relationship)

    def secret(name: str, relationship: Relationship) -> None:
        if name:
            result.add_dependency_by_key(ref("", "Secret", ns, name), relationship)

    for volume in maps(nested_list(node, "spec", "volumes"), "spec.volumes"):
        configmap(string(volume, "configMap", "name"), Relationship.POD_VOLUME)
        secret(string(volume, "secret", "secretName"), Relationship.POD_VOLUME)
        claim = string(volume, "persistentVolumeClaim", "claimName")
        if claim:
            result.add_dependency_by_key(ref("", "PersistentVolumeClaim", ns, claim), Relationship.POD_VOLUME)
        projected = volume.get("projected")
        if isinstance(projected, Mapping):
            for source in _list(projected, "sources", "spec.volumes[].projected.sources"):
                configmap(string(source, "configMap", "name"), Relationship.POD_VOLUME)
                secret(string(source, "secret", "name"), Relationship.POD_VOLUME)

    for field in _CONTAINER_FIELDS:
        for container in maps(nested_list(node, "spec", field), f"spec.{field}"):
            for env in _list(container, "env", f"spec.{field}[].env"):
                configmap(string(env, "valueFrom", "configMapKeyRef", "name"), Relationship.POD_CONTAINER_ENV)
                secret(string(env, "valueFrom", "secretKeyRef", "name"), Relationship.POD_CONTAINER_ENV)
            for env_from in _list(container, "envFrom", f"spec.{field}[].envFrom"):
                configmap(string(env_from, "configMapRef", "name"), Relationship.POD_CONTAINER_ENV)
                secret(string(env_from, "secretRef", "name"), Relationship.POD_CONTAINER_ENV)

    for pull_secret in maps(nested_list(node, "spec", "imagePullSecrets"), "spec.imagePullSecrets"):
        secret(string(pull_secret, "name"), Relationship.POD_IMAGE_PULL_SECRET)

    if node_name := node.get_nested_string("spec", "nodeName"):
        result.add_dependency_by_key(ref("", "Node", "", node_name), Relationship.POD_NODE)
    if priority_class := node.get_nested_string("spec", "priorityClassName"):
        result.add_dependency_by_key(
            ref("scheduling.k8s.io", "PriorityClass", "", priority_class), Relationship.POD_PRIORITY_CLASS
        )
    if runtime_class := node.get_nested_string("spec", "runtimeClassName"):
        result.add_dependency_by_key(
            ref("node.k8s.io", "RuntimeClass", "", runtime_class), Relationship.POD_RUNTIME_CLASS
        )
    service_account = node.get_nested_string("spec", "serviceAccountName") or node.get_nested_string(
        "spec", "serviceAccount"
    )
    if service_account:
        result.add_dependency_by_key(ref("", "ServiceAccount", ns, service_account), Relationship.POD_SERVICE_ACCOUNT)

    return result


def _list(entry: Mapping[str, Any], key: str, path: str) -> list[Mapping[str, Any]]:
    value = entry.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ExtractorError(f"{path}: expected list, got {type(value).__name__}")
    return maps(value, path)


def persistent_volume_relationships(node: Node) -> RelationshipMap:
    """PersistentVolumes depend on their claim, storage class and CSI driver."""
    result = RelationshipMap()

    claim_ref = nested_map(node, "spec", "claimRef")
    claim_name = string(claim_ref, "name")
    if claim_name:
        result.add_dependency_by_key(
            ref("", "PersistentVolumeClaim", string(claim_ref, "namespace"), claim_name),
            Relationship.PERSISTENT_VOLUME_CLAIM,
        )

    if storage_class := node.get_nested_string("spec", "storageClassName"):
        result.add_dependency_by_key(
            ref("storage.k8s.io", "StorageClass", "", storage_class), Relationship.PERSISTENT_VOLUME_STORAGE_CLASS
        )

    csi = nested_map(node, "spec", "csi")
    if driver := string(csi, "driver"):
        result.add_dependency_by_key(
            ref("storage.k8s.io", "CSIDriver", "", driver), Relationship.PERSISTENT_VOLUME_CSI_DRIVER
        )
    for field in _CSI_SECRET_FIELDS:
        name = string(csi, field, "name")
        if name:
            result.add_dependency_by_key(
                ref("", "Secret", string(csi, field, "namespace"), name),
                Relationship.PERSISTENT_VOLUME_CSI_DRIVER_SECRET,
            )

    return result


def persistent_volume_claim_relationships(node: Node) -> RelationshipMap:
    result = RelationshipMap()
    if storage_class := node.get_nested_string("spec", "storageClassName"):
        result.add_dependency_by_key(
            ref("storage.k8s.io", "StorageClass", "", storage_class),
            Relationship.PERSISTENT_VOLUME_CLAIM_STORAGE_CLASS,
        )
    return result


def service_relationships(node: Node) -> RelationshipMap:
    """Services depend on the pods matched by ``spec.selector``.

    A service without a selector selects nothing.
    """
    result = RelationshipMap()
    selector = nested_map(node, "spec", "selector")
    if selector:
        ols = ObjectLabelSelector(group="", kind="Pod", namespace=node.namespace, selector=Selector.from_set(selector))
        result.add_dependency_by_selector(ols, Relationship.SERVICE)
    return result


def service_account_relationships(node: Node) -> RelationshipMap:
    result = RelationshipMap()
    ns = node.namespace
    for entry in maps(nested_list(node, "secrets"), "secrets"):
        if name := string(entry, "name"):
            result.add_dependency_by_key(ref("", "Secret", ns, name), Relationship.SERVICE_ACCOUNT_SECRET)
    for entry in maps(nested_list(node, "imagePullSecrets"), "imagePullSecrets"):
        if name := string(entry, "name"):
            result.add_dependency_by_key(ref("", "Secret", ns, name), Relationship.SERVICE_ACCOUNT_IMAGE_PULL_SECRET)
    return result


def event_relationships(node: Node) -> RelationshipMap:
    """Events depend on the object they report on.

    Core events carry ``involvedObject``; events.k8s.io events carry
    ``regarding`` and optionally ``related``. Objects are matched by UID first
    and by reference when the UID is absent.
    """
    result = RelationshipMap()
    regarding = nested_map(node, "regarding") or nested_map(node, "involvedObject")
    _event_target(result, regarding, Relationship.EVENT_REGARDING)
    _event_target(result, nested_map(node, "related"), Relationship.EVENT_RELATED)
    return result


def _event_target(result: RelationshipMap, target: Mapping[str, Any], relationship: Relationship) -> None:
    if not target:
        return
    if uid := string(target, "uid"):
        result.add_dependency_by_uid(uid, relationship)
        return
    name, kind = string(target, "name"), string(target, "kind")
    if name and kind:
        group = api_group(string(target, "apiVersion"))
        result.add_dependency_by_key(ref(group, kind, string(target, "namespace"), name), relationship)
