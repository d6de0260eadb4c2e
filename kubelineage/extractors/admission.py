"""Relationship extractors for admission webhook configurations."""

from __future__ import annotations

from kubelineage.extractors._fields import maps, nested_list, ref, string
from kubelineage.graph.models import Node, Relationship, RelationshipMap


def webhook_configuration_relationships(node: Node) -> RelationshipMap:
    """Webhook configurations depend on the services backing their webhooks.

    Shared by MutatingWebhookConfiguration and ValidatingWebhookConfiguration;
    webhooks addressed by URL declare nothing.
    """
    result = RelationshipMap()
    for webhook in maps(nested_list(node, "webhooks"), "webhooks"):
        namespace = string(webhook, "clientConfig", "service", "namespace")
        name = string(webhook, "clientConfig", "service", "name")
        if name:
            result.add_dependency_by_key(
                ref("", "Service", namespace, name), Relationship.WEBHOOK_CONFIGURATION_SERVICE
            )
    return result
