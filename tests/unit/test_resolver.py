"""Tests for index building, edge resolution and dependent traversal."""

from __future__ import annotations

from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st

from kubelineage.graph.models import Node, ObjectLabelSelector, ObjectReference, RelationshipMap
from kubelineage.graph.registry import ExtractorError, ExtractorRegistry
from kubelineage.graph.resolver import build_graph, resolve_dependents
from kubelineage.graph.selectors import Selector

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _obj(
    kind: str,
    name: str,
    uid: str,
    namespace: str = "default",
    api_version: str = "v1",
    owners: list[tuple[str, bool | None]] | None = None,
    labels: dict[str, str] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "uid": uid}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    if owners:
        refs = []
        for owner_uid, controller in owners:
            ref: dict[str, Any] = {"uid": owner_uid, "kind": "Owner", "name": owner_uid}
            if controller is not None:
                ref["controller"] = controller
            refs.append(ref)
        metadata["ownerReferences"] = refs
    return {"apiVersion": api_version, "kind": kind, "metadata": metadata, **fields}


def _empty_registry() -> ExtractorRegistry:
    return ExtractorRegistry()


def _d_r_p() -> list[dict[str, Any]]:
    return [
        _obj("Deployment", "D", "d-uid", api_version="apps/v1"),
        _obj("ReplicaSet", "R", "r-uid", api_version="apps/v1", owners=[("d-uid", True)]),
        _obj("Pod", "P", "p-uid", owners=[("r-uid", True)]),
    ]


def _snapshot(nodes: dict[str, Node]) -> dict[str, dict[str, set[str]]]:
    return {uid: {d: set(r) for d, r in n.dependents.items()} for uid, n in nodes.items()}


# =====================================================================
# Owner references
# =====================================================================


class TestOwnerReferences:
    def test_deployment_replicaset_pod_chain(self) -> None:
        objects = _d_r_p()
        result = resolve_dependents(objects, "d-uid", _empty_registry())

        assert set(result) == {"d-uid", "r-uid", "p-uid"}
        assert result["d-uid"].dependents == {"r-uid": {"OwnerRef", "ControllerRef"}}
        assert result["r-uid"].dependents == {"p-uid": {"OwnerRef", "ControllerRef"}}

    def test_leaf_has_only_itself(self) -> None:
        result = resolve_dependents(_d_r_p(), "p-uid", _empty_registry())
        assert set(result) == {"p-uid"}
        assert len(result) - 1 == 0

    def test_non_controller_owner_only_owner_ref(self) -> None:
        objects = [
            _obj("ConfigMap", "owner", "o-uid"),
            _obj("Secret", "a", "a-uid", owners=[("o-uid", False)]),
            _obj("Secret", "b", "b-uid", owners=[("o-uid", None)]),
        ]
        result = resolve_dependents(objects, "o-uid", _empty_registry())
        assert result["o-uid"].dependents == {"a-uid": {"OwnerRef"}, "b-uid": {"OwnerRef"}}

    def test_dangling_owner_reference_is_dropped(self) -> None:
        objects = [_obj("Pod", "P", "p-uid", owners=[("missing", True)])]
        graph = build_graph(objects, _empty_registry())
        assert set(graph.dependents_of("p-uid")) == {"p-uid"}
        assert graph.stats.dangling_owner_references == 1

    def test_owner_cycle_terminates(self) -> None:
        objects = [
            _obj("ConfigMap", "A", "a-uid", owners=[("b-uid", False)]),
            _obj("ConfigMap", "B", "b-uid", owners=[("a-uid", False)]),
        ]
        result = resolve_dependents(objects, "a-uid", _empty_registry())
        assert set(result) == {"a-uid", "b-uid"}

    def test_owner_reference_resolves_node_alias(self) -> None:
        objects = [
            _obj("Node", "node-1", "node-uid", namespace=""),
            _obj("Lease", "node-1", "lease-uid", namespace="kube-node-lease", owners=[("node-1", False)]),
        ]
        result = resolve_dependents(objects, "node-uid", _empty_registry())
        assert result["node-uid"].dependents == {"lease-uid": {"OwnerRef"}}


# =====================================================================
# Roots and empty input
# =====================================================================


class TestRoots:
    def test_empty_input(self) -> None:
        assert resolve_dependents([], "anything", _empty_registry()) == {}

    def test_absent_root(self) -> None:
        assert resolve_dependents(_d_r_p(), "missing", _empty_registry()) == {}

    def test_non_mapping_objects_are_skipped(self) -> None:
        objects: list[Any] = ["junk", None, *_d_r_p()]
        graph = build_graph(objects, _empty_registry())
        assert graph.stats.objects == 3
        assert len(graph) == 3

    def test_duplicate_uid_last_write_wins(self) -> None:
        objects = [_obj("ConfigMap", "first", "dup"), _obj("ConfigMap", "second", "dup")]
        graph = build_graph(objects, _empty_registry())
        node = graph.get("dup")
        assert node is not None
        assert node.name == "second"
        assert graph.stats.duplicate_uids == 1

    def test_node_aliases_by_name_and_hostname(self) -> None:
        objects = [
            _obj(
                "Node",
                "node-1",
                "node-uid",
                namespace="",
                labels={"kubernetes.io/hostname": "host-1.example"},
            )
        ]
        graph = build_graph(objects, _empty_registry())
        for alias in ("node-uid", "node-1", "host-1.example"):
            assert set(graph.dependents_of(alias)) == {"node-uid"}

    def test_node_aliases_can_be_disabled(self) -> None:
        objects = [_obj("Node", "node-1", "node-uid", namespace="")]
        graph = build_graph(objects, _empty_registry(), node_aliases=False)
        assert graph.dependents_of("node-1") == {}

    def test_alias_does_not_shadow_real_uid(self) -> None:
        objects = [
            _obj("ConfigMap", "cm", "node-1"),
            _obj("Node", "node-1", "node-uid", namespace=""),
        ]
        graph = build_graph(objects, _empty_registry())
        node = graph.get("node-1")
        assert node is not None
        assert node.kind == "ConfigMap"

    def test_find_by_kind_and_name(self) -> None:
        graph = build_graph(_d_r_p(), _empty_registry())
        assert [n.uid for n in graph.find("ReplicaSet", "R", "default")] == ["r-uid"]
        assert graph.find("ReplicaSet", "R", "default", group="") == []


# =====================================================================
# Extractor declarations
# =====================================================================


def _registry_for(kind: str, fn: Any) -> ExtractorRegistry:
    registry = ExtractorRegistry()
    registry.register("", kind, fn)
    return registry


class TestExtractorDeclarations:
    def test_dependency_by_key_is_reverse_edge(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            rmap = RelationshipMap()
            rmap.add_dependency_by_key(ObjectReference("", "Secret", "default", "creds").key(), "Uses")
            return rmap

        objects = [_obj("Pod", "p", "p-uid"), _obj("Secret", "creds", "s-uid")]
        graph = build_graph(objects, _registry_for("Pod", extractor))
        assert graph.dependents_of("s-uid")["s-uid"].dependents == {"p-uid": {"Uses"}}
        assert set(graph.dependents_of("p-uid")) == {"p-uid"}

    def test_dependent_by_uid_is_forward_edge(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            rmap = RelationshipMap()
            rmap.add_dependent_by_uid("s-uid", "Feeds")
            return rmap

        objects = [_obj("Pod", "p", "p-uid"), _obj("Secret", "creds", "s-uid")]
        result = resolve_dependents(objects, "p-uid", _registry_for("Pod", extractor))
        assert result["p-uid"].dependents == {"s-uid": {"Feeds"}}

    def test_dependency_by_uid_resolves_node_alias(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            rmap = RelationshipMap()
            rmap.add_dependency_by_uid("node-1", "About")
            return rmap

        objects = [_obj("Event", "e", "e-uid"), _obj("Node", "node-1", "node-uid", namespace="")]
        result = resolve_dependents(objects, "node-uid", _registry_for("Event", extractor))
        assert result["node-uid"].dependents == {"e-uid": {"About"}}

    def test_dependent_by_selector_matches_labels(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            rmap = RelationshipMap()
            ols = ObjectLabelSelector("", "Pod", "default", Selector.from_set({"app": "web"}))
            rmap.add_dependent_by_selector(ols, "Selects")
            return rmap

        objects = [
            _obj("Service", "A", "a-uid"),
            _obj("Pod", "B", "b-uid", labels={"app": "web"}),
            _obj("Pod", "C", "c-uid", labels={"app": "web", "tier": "fe"}),
            _obj("Pod", "D", "d-uid", labels={"app": "db"}),
            _obj("Pod", "E", "e-uid", namespace="other", labels={"app": "web"}),
            _obj("ConfigMap", "F", "f-uid", labels={"app": "web"}),
        ]
        result = resolve_dependents(objects, "a-uid", _registry_for("Service", extractor))
        assert set(result) == {"a-uid", "b-uid", "c-uid"}
        assert result["a-uid"].dependents == {"b-uid": {"Selects"}, "c-uid": {"Selects"}}

    def test_unresolvable_reference_is_dropped(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            rmap = RelationshipMap()
            rmap.add_dependency_by_key(ObjectReference("", "Secret", "default", "missing").key(), "Uses")
            rmap.add_dependent_by_key(ObjectReference("", "Secret", "default", "missing").key(), "Uses")
            rmap.add_dependent_by_uid("missing-uid", "Uses")
            rmap.add_dependent_by_selector(
                ObjectLabelSelector("", "Pod", "default", Selector.from_set({"app": "none"})), "Uses"
            )
            return rmap

        objects = [_obj("Pod", "p", "p-uid")]
        graph = build_graph(objects, _registry_for("Pod", extractor))
        result = graph.dependents_of("p-uid")
        assert set(result) == {"p-uid"}
        assert result["p-uid"].dependents == {}
        assert graph.stats.unresolved_references == 2
        assert graph.stats.unresolved_uids == 1
        assert graph.stats.unmatched_selectors == 1

    def test_failing_extractor_keeps_owner_edges(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            raise ExtractorError("spec.volumes: expected list")

        objects = [_obj("ConfigMap", "owner", "o-uid"), _obj("Pod", "p", "p-uid", owners=[("o-uid", True)])]
        graph = build_graph(objects, _registry_for("Pod", extractor))
        assert set(graph.dependents_of("o-uid")) == {"o-uid", "p-uid"}
        assert graph.stats.extractor_failures == 1

    def test_unexpected_extractor_exception_is_contained(self) -> None:
        def extractor(node: Node) -> RelationshipMap:
            raise KeyError("boom")

        graph = build_graph([_obj("Pod", "p", "p-uid")], _registry_for("Pod", extractor))
        assert set(graph.dependents_of("p-uid")) == {"p-uid"}
        assert graph.stats.extractor_failures == 1

    def test_unregistered_kind_is_skipped(self) -> None:
        calls: list[str] = []

        def extractor(node: Node) -> RelationshipMap:
            calls.append(node.kind)
            return RelationshipMap()

        build_graph([_obj("Pod", "p", "p-uid"), _obj("Secret", "s", "s-uid")], _registry_for("Pod", extractor))
        assert calls == ["Pod"]

    def test_input_objects_are_not_mutated(self) -> None:
        objects = _d_r_p()
        before = repr(objects)
        resolve_dependents(objects, "d-uid", _empty_registry())
        assert repr(objects) == before


# =====================================================================
# Properties
# =====================================================================


@st.composite
def _owner_graphs(draw: st.DrawFn) -> list[dict[str, Any]]:
    count = draw(st.integers(min_value=1, max_value=12))
    uids = [f"uid-{i}" for i in range(count)]
    objects = []
    for i, uid in enumerate(uids):
        owners = draw(
            st.lists(
                st.tuples(st.sampled_from([*uids, "dangling"]), st.one_of(st.none(), st.booleans())),
                max_size=3,
            )
        )
        objects.append(_obj("ConfigMap", f"cm-{i}", uid, owners=owners))
    return objects


class TestTraversalProperties:
    @settings(max_examples=50, deadline=None)
    @given(_owner_graphs(), st.integers(min_value=0, max_value=12))
    def test_result_only_contains_input_uids(self, objects: list[dict[str, Any]], root_ix: int) -> None:
        root = f"uid-{root_ix}"
        result = resolve_dependents(objects, root, _empty_registry())
        input_uids = {o["metadata"]["uid"] for o in objects}
        assert set(result) <= input_uids
        if root not in input_uids:
            assert result == {}
        else:
            assert root in result

    @settings(max_examples=50, deadline=None)
    @given(_owner_graphs())
    def test_every_edge_in_result_resolves(self, objects: list[dict[str, Any]]) -> None:
        graph = build_graph(objects, _empty_registry())
        result = graph.dependents_of("uid-0")
        for node in result.values():
            for dependent_uid in node.dependents:
                assert dependent_uid in result

    @settings(max_examples=50, deadline=None)
    @given(_owner_graphs())
    def test_resolution_is_idempotent(self, objects: list[dict[str, Any]]) -> None:
        first = resolve_dependents(objects, "uid-0", _empty_registry())
        second = resolve_dependents(objects, "uid-0", _empty_registry())
        assert _snapshot(first) == _snapshot(second)

    @settings(max_examples=50, deadline=None)
    @given(_owner_graphs())
    def test_traversal_from_shared_graph_is_repeatable(self, objects: list[dict[str, Any]]) -> None:
        graph = build_graph(objects, _empty_registry())
        assert _snapshot(graph.dependents_of("uid-0")) == _snapshot(graph.dependents_of("uid-0"))
