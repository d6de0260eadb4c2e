"""Relationship resolution and dependent-set traversal.

Builds the global indices over a flat object list, turns owner references and
extractor declarations into edges on each Node, then walks the edges from a
root UID to collect its transitive dependents.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from typing import Any

from kubelineage.graph.models import (
    Node,
    NodeMap,
    ObjectLabelSelector,
    ObjectLabelSelectorKey,
    ObjectReferenceKey,
    Relationship,
    RelationshipMap,
    RelationshipSet,
    ResolutionStats,
)
from kubelineage.graph.registry import ExtractorRegistry
from kubelineage.observability.logging import get_logger

_logger = get_logger("graph.resolver")

DEFAULT_HOSTNAME_LABEL = "kubernetes.io/hostname"


class ResolvedGraph:
    """Every object of one snapshot with all of its edges resolved.

    The indices are private to this instance and are read-only once the
    constructor returns, so ``dependents_of`` may be called concurrently for
    different roots.
    """

    def __init__(
        self,
        objects: Iterable[Mapping[str, Any]],
        registry: ExtractorRegistry | None = None,
        *,
        hostname_label: str = DEFAULT_HOSTNAME_LABEL,
        node_aliases: bool = True,
    ) -> None:
        if registry is None:
            from kubelineage.extractors import default_registry

            registry = default_registry()

        self.stats = ResolutionStats()
        self._by_uid: dict[str, Node] = {}
        self._by_key: dict[ObjectReferenceKey, Node] = {}
        self._aliases: dict[str, Node] = {}

        self._build_indices(objects, hostname_label if node_aliases else None)
        self._materialize_owner_references()
        self._resolve_relationships(registry)

        _logger.debug("relationships_resolved", **self.stats.as_dict())

    # ------------------------------------------------------------------
    # Index build
    # ------------------------------------------------------------------

    def _build_indices(self, objects: Iterable[Mapping[str, Any]], hostname_label: str | None) -> None:
        for obj in objects:
            if not isinstance(obj, Mapping):
                continue
            node = Node.from_object(obj)
            self.stats.objects += 1

            if node.uid in self._by_uid:
                # Last write wins for the primary entry. An earlier node with a
                # different reference key stays reachable by key only, so edges
                # linked onto it are never traversed.
                self.stats.duplicate_uids += 1
                _logger.debug("duplicate_uid", uid=node.uid, kind=node.kind, name=node.name)
            self._by_uid[node.uid] = node
            self._by_key[node.reference_key()] = node

            if hostname_label is not None and node.group == "" and node.kind == "Node":
                # Kubelet events name the node as the involved object UID and
                # kube-proxy events use its hostname label.
                self._aliases[node.name] = node
                hostname = node.labels.get(hostname_label)
                if hostname:
                    self._aliases[hostname] = node

    def _lookup_uid(self, uid: str) -> Node | None:
        node = self._by_uid.get(uid)
        if node is None:
            node = self._aliases.get(uid)
        return node

    # ------------------------------------------------------------------
    # Edge resolution
    # ------------------------------------------------------------------

    def _materialize_owner_references(self) -> None:
        for node in self._by_uid.values():
            for ref in node.owner_references:
                owner = self._lookup_uid(ref.uid)
                if owner is None:
                    self.stats.dangling_owner_references += 1
                    continue
                owner.add_dependent(node.uid, Relationship.OWNER_REF)
                if ref.controller:
                    owner.add_dependent(node.uid, Relationship.CONTROLLER_REF)

    def _resolve_relationships(self, registry: ExtractorRegistry) -> None:
        for node in self._by_uid.values():
            extractor = registry.get(node.group, node.kind)
            if extractor is None:
                continue
            try:
                rmap = extractor(node)
            except Exception as exc:  # noqa: BLE001
                self.stats.extractor_failures += 1
                _logger.debug(
                    "relationship_extraction_failed",
                    group=node.group,
                    kind=node.kind,
                    namespace=node.namespace,
                    name=node.name,
                    error=str(exc),
                )
                continue
            self._apply(node, rmap)

    def _apply(self, node: Node, rmap: RelationshipMap) -> None:
        # Dependency declarations become reverse edges: the target gains the
        # declaring node as a dependent. Dependent declarations are forward.
        for key, rset in rmap.dependencies_by_ref.items():
            target = self._by_key.get(key)
            if target is None:
                self.stats.unresolved_references += 1
                continue
            _link(target, node, rset)
        for key, rset in rmap.dependents_by_ref.items():
            target = self._by_key.get(key)
            if target is None:
                self.stats.unresolved_references += 1
                continue
            _link(node, target, rset)

        for uid, rset in rmap.dependencies_by_uid.items():
            target = self._lookup_uid(uid)
            if target is None:
                self.stats.unresolved_uids += 1
                continue
            _link(target, node, rset)
        for uid, rset in rmap.dependents_by_uid.items():
            target = self._lookup_uid(uid)
            if target is None:
                self.stats.unresolved_uids += 1
                continue
            _link(node, target, rset)

        for skey, rset in rmap.dependencies_by_selector.items():
            for target in self._select(rmap, skey):
                _link(target, node, rset)
        for skey, rset in rmap.dependents_by_selector.items():
            for target in self._select(rmap, skey):
                _link(node, target, rset)

    def _select(self, rmap: RelationshipMap, key: ObjectLabelSelectorKey) -> list[Node]:
        ols = rmap.label_selectors.get(key)
        matched = [] if ols is None else [n for n in self._by_uid.values() if _selects(ols, n)]
        if not matched:
            self.stats.unmatched_selectors += 1
        return matched

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def __contains__(self, uid: object) -> bool:
        return isinstance(uid, str) and self._lookup_uid(uid) is not None

    def __len__(self) -> int:
        return len(self._by_uid)

    def get(self, uid: str) -> Node | None:
        """Look up a node by UID, node name or hostname alias."""
        return self._lookup_uid(uid)

    def find(self, kind: str, name: str, namespace: str = "", group: str | None = None) -> list[Node]:
        """Return nodes matching kind and name (and group, when given)."""
        return [
            n
            for n in self._by_uid.values()
            if n.kind == kind and n.name == name and n.namespace == namespace and (group is None or n.group == group)
        ]

    def dependents_of(self, root_uid: str) -> NodeMap:
        """Return the root and all of its transitive dependents keyed by UID.

        An unknown root yields an empty map.
        """
        result: NodeMap = {}
        root = self._lookup_uid(root_uid)
        if root is None:
            _logger.debug("root_not_found", root_uid=root_uid)
            return result

        queue: deque[str] = deque([root.uid])
        visited: set[str] = set()
        while queue:
            uid = queue.popleft()
            # Guard against cyclic dependents
            if uid in visited:
                continue
            visited.add(uid)

            node = self._by_uid.get(uid)
            if node is None:
                continue
            result[uid] = node
            queue.extend(node.dependents)

        _logger.debug("dependents_resolved", root_uid=root.uid, dependents=len(result) - 1)
        return result


def _link(owner: Node, dependent: Node, rset: RelationshipSet) -> None:
    for relationship in rset:
        owner.add_dependent(dependent.uid, relationship)


def _selects(ols: ObjectLabelSelector, node: Node) -> bool:
    return (
        node.group == ols.group
        and node.kind == ols.kind
        and node.namespace == ols.namespace
        and ols.selector.matches(node.labels)
    )


def build_graph(
    objects: Iterable[Mapping[str, Any]],
    registry: ExtractorRegistry | None = None,
    *,
    hostname_label: str = DEFAULT_HOSTNAME_LABEL,
    node_aliases: bool = True,
) -> ResolvedGraph:
    """Index *objects* and resolve every relationship between them."""
    return ResolvedGraph(objects, registry, hostname_label=hostname_label, node_aliases=node_aliases)


def resolve_dependents(
    objects: Iterable[Mapping[str, Any]],
    root_uid: str,
    registry: ExtractorRegistry | None = None,
) -> NodeMap:
    """Resolve all dependents of the root object and return the relationship subgraph."""
    return build_graph(objects, registry).dependents_of(root_uid)
