"""Built-in per-kind relationship extractors.

Each extractor reads one object's fields and declares its relationships in a
RelationshipMap; the resolver turns the declarations into edges.

Submodules:
    core       -- Pod, PersistentVolume(Claim), Service, ServiceAccount, Event.
    networking -- Ingress, IngressClass.
    rbac       -- ClusterRole, ClusterRoleBinding, RoleBinding.
    admission  -- Mutating/ValidatingWebhookConfiguration.
"""

from __future__ import annotations

from kubelineage.extractors.admission import webhook_configuration_relationships
from kubelineage.extractors.core import (
    event_relationships,
    persistent_volume_claim_relationships,
    persistent_volume_relationships,
    pod_relationships,
    service_account_relationships,
    service_relationships,
)
from kubelineage.extractors.networking import ingress_class_relationships, ingress_relationships
from kubelineage.extractors.rbac import (
    RBAC_GROUP,
    cluster_role_binding_relationships,
    cluster_role_relationships,
    role_binding_relationships,
)
from kubelineage.graph.registry import Extractor, ExtractorRegistry

_ADMISSION_GROUP = "admissionregistration.k8s.io"

BUILTIN_EXTRACTORS: dict[tuple[str, str], Extractor] = {
    ("", "Event"): event_relationships,
    ("events.k8s.io", "Event"): event_relationships,
    ("", "PersistentVolume"): persistent_volume_relationships,
    ("", "PersistentVolumeClaim"): persistent_volume_claim_relationships,
    ("", "Pod"): pod_relationships,
    ("", "Service"): service_relationships,
    ("", "ServiceAccount"): service_account_relationships,
    ("networking.k8s.io", "Ingress"): ingress_relationships,
    ("extensions", "Ingress"): ingress_relationships,
    ("networking.k8s.io", "IngressClass"): ingress_class_relationships,
    (RBAC_GROUP, "ClusterRole"): cluster_role_relationships,
    (RBAC_GROUP, "ClusterRoleBinding"): cluster_role_binding_relationships,
    (RBAC_GROUP, "RoleBinding"): role_binding_relationships,
    (_ADMISSION_GROUP, "MutatingWebhookConfiguration"): webhook_configuration_relationships,
    (_ADMISSION_GROUP, "ValidatingWebhookConfiguration"): webhook_configuration_relationships,
}


def default_registry() -> ExtractorRegistry:
    """Build a fresh registry holding every built-in extractor."""
    registry = ExtractorRegistry()
    for (group, kind), extractor in BUILTIN_EXTRACTORS.items():
        registry.register(group, kind, extractor)
    return registry


__all__ = ["BUILTIN_EXTRACTORS", "default_registry"]
