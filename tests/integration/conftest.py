"""Shared fixtures for kubelineage integration tests.

Provides a realistic single-namespace cluster snapshot (workload, storage,
networking, RBAC and events) and the graph resolved from it with the built-in
extractors.
"""

from __future__ import annotations

from typing import Any

import pytest

from kubelineage.graph import ResolvedGraph, build_graph

# ---------------------------------------------------------------------------
# Object factory helpers
# ---------------------------------------------------------------------------


def make_object(
    kind: str,
    name: str,
    uid: str,
    namespace: str = "shop",
    api_version: str = "v1",
    labels: dict[str, str] | None = None,
    owner: tuple[str, str, str] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Create an object manifest; *owner* is (kind, name, uid) of a controller owner."""
    metadata: dict[str, Any] = {"name": name, "uid": uid}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    if owner:
        owner_kind, owner_name, owner_uid = owner
        metadata["ownerReferences"] = [
            {
                "apiVersion": "apps/v1",
                "kind": owner_kind,
                "name": owner_name,
                "uid": owner_uid,
                "controller": True,
                "blockOwnerDeletion": True,
            }
        ]
    return {"apiVersion": api_version, "kind": kind, "metadata": metadata, **fields}


def make_pod(name: str, uid: str) -> dict[str, Any]:
    return make_object(
        "Pod",
        name,
        uid,
        labels={"app": "web", "pod-template-hash": "7d9f"},
        owner=("ReplicaSet", "web-7d9f", "rs-web"),
        spec={
            "nodeName": "node-1",
            "serviceAccountName": "runner",
            "volumes": [
                {"name": "config", "configMap": {"name": "web-config"}},
                {"name": "data", "persistentVolumeClaim": {"claimName": "web-data"}},
            ],
            "containers": [
                {"name": "web", "envFrom": [{"secretRef": {"name": "web-env"}}]},
            ],
        },
    )


_RBAC = "rbac.authorization.k8s.io"


def cluster_snapshot() -> list[dict[str, Any]]:
    return [
        make_object("Deployment", "web", "deploy-web", api_version="apps/v1", spec={"replicas": 2}),
        make_object(
            "ReplicaSet",
            "web-7d9f",
            "rs-web",
            api_version="apps/v1",
            owner=("Deployment", "web", "deploy-web"),
        ),
        make_pod("web-7d9f-a", "pod-a"),
        make_pod("web-7d9f-b", "pod-b"),
        make_object("Pod", "db-0", "pod-db", labels={"app": "db"}),
        make_object("Service", "web", "svc-web", spec={"selector": {"app": "web"}}),
        make_object(
            "EndpointSlice",
            "web-abc12",
            "eps-web",
            api_version="discovery.k8s.io/v1",
            owner=("Service", "web", "svc-web"),
        ),
        make_object("ConfigMap", "web-config", "cm-web"),
        make_object("Secret", "web-env", "secret-web-env"),
        make_object("ServiceAccount", "runner", "sa-runner"),
        make_object(
            "PersistentVolumeClaim",
            "web-data",
            "pvc-web",
            spec={"storageClassName": "fast", "volumeName": "pv-0001"},
        ),
        make_object(
            "PersistentVolume",
            "pv-0001",
            "pv-web",
            namespace="",
            spec={"storageClassName": "fast", "claimRef": {"namespace": "shop", "name": "web-data"}},
        ),
        make_object("StorageClass", "fast", "sc-fast", namespace="", api_version="storage.k8s.io/v1"),
        make_object(
            "Node",
            "node-1",
            "node-uid-1",
            namespace="",
            labels={"kubernetes.io/hostname": "ip-10-0-0-1"},
        ),
        make_object(
            "Event",
            "web-7d9f-a.17a",
            "event-pod-a",
            involvedObject={"kind": "Pod", "namespace": "shop", "name": "web-7d9f-a", "uid": "pod-a"},
            reason="BackOff",
        ),
        make_object(
            "Event",
            "node-1.17b",
            "event-node-kubelet",
            namespace="default",
            involvedObject={"kind": "Node", "name": "node-1", "uid": "node-1"},
            reason="NodeReady",
        ),
        make_object(
            "Event",
            "node-1.17c",
            "event-node-proxy",
            namespace="default",
            api_version="events.k8s.io/v1",
            regarding={"kind": "Node", "name": "node-1", "uid": "ip-10-0-0-1"},
            reason="Starting",
        ),
        make_object(
            "ClusterRole",
            "shop-view-extra",
            "cr-extra",
            namespace="",
            api_version=f"{_RBAC}/v1",
            labels={"rbac.example.com/aggregate-to-shop-view": "true"},
        ),
        make_object(
            "ClusterRole",
            "shop-view",
            "cr-view",
            namespace="",
            api_version=f"{_RBAC}/v1",
            aggregationRule={
                "clusterRoleSelectors": [{"matchLabels": {"rbac.example.com/aggregate-to-shop-view": "true"}}]
            },
        ),
        make_object(
            "RoleBinding",
            "runner-view",
            "rb-runner",
            api_version=f"{_RBAC}/v1",
            roleRef={"apiGroup": _RBAC, "kind": "ClusterRole", "name": "shop-view"},
            subjects=[{"kind": "ServiceAccount", "name": "runner"}],
        ),
        # Malformed volumes: extraction fails but the owner edge survives
        make_object(
            "Pod",
            "broken",
            "pod-broken",
            owner=("ReplicaSet", "web-7d9f", "rs-web"),
            spec={"volumes": "not-a-list"},
        ),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def objects() -> list[dict[str, Any]]:
    return cluster_snapshot()


@pytest.fixture
def graph(objects: list[dict[str, Any]]) -> ResolvedGraph:
    return build_graph(objects)
