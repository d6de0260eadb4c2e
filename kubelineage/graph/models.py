"""Data structures for the object relationship graph."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, NewType
from urllib.parse import quote

from kubelineage.graph.selectors import Selector

ObjectReferenceKey = NewType("ObjectReferenceKey", str)
ObjectLabelSelectorKey = NewType("ObjectLabelSelectorKey", str)

# A relationship label is any string; built-in labels live in Relationship.
RelationshipSet = set[str]


def _canonical_key(*components: str) -> str:
    # "/" is always percent-encoded inside a component, so the join is unambiguous
    return "/".join(quote(c, safe="") for c in components)


class Relationship(StrEnum):
    """Built-in relationship labels explaining why an edge exists."""

    OWNER_REF = "OwnerRef"
    CONTROLLER_REF = "ControllerRef"

    EVENT_REGARDING = "EventRegarding"
    EVENT_RELATED = "EventRelated"

    INGRESS_CLASS = "IngressClass"
    INGRESS_RESOURCE = "IngressResource"
    INGRESS_SERVICE = "IngressService"
    INGRESS_TLS_SECRET = "IngressTLSSecret"
    INGRESS_CLASS_PARAMETERS = "IngressClassParameters"

    PERSISTENT_VOLUME_CLAIM = "PersistentVolumeClaim"
    PERSISTENT_VOLUME_CSI_DRIVER = "PersistentVolumeCSIDriver"
    PERSISTENT_VOLUME_CSI_DRIVER_SECRET = "PersistentVolumeCSIDriverSecret"
    PERSISTENT_VOLUME_STORAGE_CLASS = "PersistentVolumeStorageClass"
    PERSISTENT_VOLUME_CLAIM_STORAGE_CLASS = "PersistentVolumeClaimStorageClass"

    POD_CONTAINER_ENV = "PodContainerEnvironment"
    POD_IMAGE_PULL_SECRET = "PodImagePullSecret"
    POD_NODE = "PodNode"
    POD_PRIORITY_CLASS = "PodPriorityClass"
    POD_RUNTIME_CLASS = "PodRuntimeClass"
    POD_SERVICE_ACCOUNT = "PodServiceAccount"
    POD_VOLUME = "PodVolume"

    CLUSTER_ROLE_AGGREGATION_RULE = "ClusterRoleAggregationRule"
    CLUSTER_ROLE_BINDING_ROLE = "ClusterRoleBindingRole"
    CLUSTER_ROLE_BINDING_SUBJECT = "ClusterRoleBindingSubject"
    ROLE_BINDING_ROLE = "RoleBindingRole"
    ROLE_BINDING_SUBJECT = "RoleBindingSubject"

    SERVICE = "Service"
    SERVICE_ACCOUNT_SECRET = "ServiceAccountSecret"
    SERVICE_ACCOUNT_IMAGE_PULL_SECRET = "ServiceAccountImagePullSecret"

    WEBHOOK_CONFIGURATION_SERVICE = "WebhookConfigurationService"


def sorted_relationships(rset: Iterable[str]) -> list[str]:
    """Return the labels of a relationship set in display order."""
    return sorted(str(r) for r in rset)


@dataclass(frozen=True)
class ObjectReference:
    """Addresses exactly one object by its coordinates."""

    group: str
    kind: str
    namespace: str
    name: str

    def key(self) -> ObjectReferenceKey:
        return ObjectReferenceKey(_canonical_key(self.group, self.kind, self.namespace, self.name))


@dataclass(frozen=True)
class ObjectLabelSelector:
    """Addresses zero or more objects of one kind by label match within a namespace."""

    group: str
    kind: str
    namespace: str
    selector: Selector

    def key(self) -> ObjectLabelSelectorKey:
        return ObjectLabelSelectorKey(_canonical_key(self.group, self.kind, self.namespace, str(self.selector)))


def _add(index: dict[Any, RelationshipSet], key: Any, relationship: str) -> None:
    index.setdefault(key, set()).add(relationship)


@dataclass
class RelationshipMap:
    """Relationships one object declares with other objects in the cluster.

    "Dependencies" are objects this object relies on; "dependents" are objects
    relying on this one. Each is addressed by reference key, UID or label
    selector. Produced by an extractor and consumed once by the resolver.
    """

    dependencies_by_ref: dict[ObjectReferenceKey, RelationshipSet] = field(default_factory=dict)
    dependencies_by_uid: dict[str, RelationshipSet] = field(default_factory=dict)
    dependencies_by_selector: dict[ObjectLabelSelectorKey, RelationshipSet] = field(default_factory=dict)
    dependents_by_ref: dict[ObjectReferenceKey, RelationshipSet] = field(default_factory=dict)
    dependents_by_uid: dict[str, RelationshipSet] = field(default_factory=dict)
    dependents_by_selector: dict[ObjectLabelSelectorKey, RelationshipSet] = field(default_factory=dict)
    label_selectors: dict[ObjectLabelSelectorKey, ObjectLabelSelector] = field(default_factory=dict)

    def add_dependency_by_key(self, key: ObjectReferenceKey, relationship: str) -> None:
        _add(self.dependencies_by_ref, key, relationship)

    def add_dependency_by_uid(self, uid: str, relationship: str) -> None:
        _add(self.dependencies_by_uid, uid, relationship)

    def add_dependency_by_selector(self, ols: ObjectLabelSelector, relationship: str) -> None:
        key = ols.key()
        _add(self.dependencies_by_selector, key, relationship)
        self.label_selectors[key] = ols

    def add_dependent_by_key(self, key: ObjectReferenceKey, relationship: str) -> None:
        _add(self.dependents_by_ref, key, relationship)

    def add_dependent_by_uid(self, uid: str, relationship: str) -> None:
        _add(self.dependents_by_uid, uid, relationship)

    def add_dependent_by_selector(self, ols: ObjectLabelSelector, relationship: str) -> None:
        key = ols.key()
        _add(self.dependents_by_selector, key, relationship)
        self.label_selectors[key] = ols


@dataclass(frozen=True)
class OwnerReference:
    """One entry of ``metadata.ownerReferences``."""

    uid: str
    controller: bool = False
    api_version: str = ""
    kind: str = ""
    name: str = ""


def _owner_references(metadata: Mapping[str, Any]) -> list[OwnerReference]:
    refs = metadata.get("ownerReferences")
    if not isinstance(refs, list):
        return []
    result = []
    for ref in refs:
        if not isinstance(ref, Mapping) or not isinstance(ref.get("uid"), str):
            continue
        result.append(
            OwnerReference(
                uid=ref["uid"],
                controller=ref.get("controller") is True,
                api_version=str(ref.get("apiVersion", "")),
                kind=str(ref.get("kind", "")),
                name=str(ref.get("name", "")),
            )
        )
    return result


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(eq=False)
class Node:
    """A Kubernetes object in a relationship graph.

    ``obj`` is borrowed from the caller's input and never mutated. Edges to
    other nodes are held as UIDs in ``dependents``; they are resolved back to
    nodes only through the enclosing NodeMap.
    """

    obj: Mapping[str, Any]
    uid: str
    group: str
    kind: str
    namespace: str
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)
    dependents: dict[str, RelationshipSet] = field(default_factory=dict)

    @classmethod
    def from_object(cls, obj: Mapping[str, Any]) -> Node:
        metadata = obj.get("metadata")
        if not isinstance(metadata, Mapping):
            metadata = {}
        api_version = _str(obj.get("apiVersion"))
        group = api_version.rpartition("/")[0] if "/" in api_version else ""
        labels = metadata.get("labels")
        return cls(
            obj=obj,
            uid=_str(metadata.get("uid")),
            group=group,
            kind=_str(obj.get("kind")),
            namespace=_str(metadata.get("namespace")),
            name=_str(metadata.get("name")),
            labels={str(k): str(v) for k, v in labels.items()} if isinstance(labels, Mapping) else {},
            owner_references=_owner_references(metadata),
        )

    def add_dependent(self, uid: str, relationship: str) -> None:
        _add(self.dependents, uid, relationship)

    def reference(self) -> ObjectReference:
        return ObjectReference(group=self.group, kind=self.kind, namespace=self.namespace, name=self.name)

    def reference_key(self) -> ObjectReferenceKey:
        return self.reference().key()

    def get_nested_field(self, *fields: str) -> Any:
        """Return the value at the given path, or None if any segment is missing."""
        value: Any = self.obj
        for f in fields:
            if not isinstance(value, Mapping) or f not in value:
                return None
            value = value[f]
        return value

    def get_nested_string(self, *fields: str) -> str:
        """Return the string at the given path, or "" if missing or not a string."""
        return _str(self.get_nested_field(*fields))

    def sort_key(self) -> tuple[str, str, str, str]:
        """Display order: namespace, kind, group, name."""
        return (self.namespace, self.kind, self.group, self.name)

    def __repr__(self) -> str:
        return (
            f"Node(uid={self.uid!r}, group={self.group!r}, kind={self.kind!r}, "
            f"namespace={self.namespace!r}, name={self.name!r})"
        )


# UID -> Node; either the full index or a resolved subgraph
NodeMap = dict[str, Node]


@dataclass
class ResolutionStats:
    """Aggregate counts of relationships dropped while resolving a graph."""

    objects: int = 0
    duplicate_uids: int = 0
    extractor_failures: int = 0
    dangling_owner_references: int = 0
    unresolved_references: int = 0
    unresolved_uids: int = 0
    unmatched_selectors: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "objects": self.objects,
            "duplicate_uids": self.duplicate_uids,
            "extractor_failures": self.extractor_failures,
            "dangling_owner_references": self.dangling_owner_references,
            "unresolved_references": self.unresolved_references,
            "unresolved_uids": self.unresolved_uids,
            "unmatched_selectors": self.unmatched_selectors,
        }
