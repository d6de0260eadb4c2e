"""Typed field access shared by the built-in extractors.

Missing fields read as empty; fields of the wrong type raise ExtractorError so
the resolver skips the object instead of declaring partial relationships.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kubelineage.graph.models import Node, ObjectReference, ObjectReferenceKey
from kubelineage.graph.registry import ExtractorError


def nested_list(node: Node, *fields: str) -> list[Any]:
    value = node.get_nested_field(*fields)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ExtractorError(f"{'.'.join(fields)}: expected list, got {type(value).__name__}")
    return value


def nested_map(node: Node, *fields: str) -> Mapping[str, Any]:
    value = node.get_nested_field(*fields)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ExtractorError(f"{'.'.join(fields)}: expected map, got {type(value).__name__}")
    return value


def maps(items: list[Any], path: str) -> list[Mapping[str, Any]]:
    """Check that every list entry is a map."""
    for item in items:
        if not isinstance(item, Mapping):
            raise ExtractorError(f"{path}: expected list of maps, got {type(item).__name__} entry")
    return items


def string(entry: Mapping[str, Any], *fields: str) -> str:
    """Read a nested string from a plain map, "" on miss or wrong type."""
    value: Any = entry
    for f in fields:
        if not isinstance(value, Mapping):
            return ""
        value = value.get(f)
    return value if isinstance(value, str) else ""


def ref(group: str, kind: str, namespace: str, name: str) -> ObjectReferenceKey:
    return ObjectReference(group=group, kind=kind, namespace=namespace, name=name).key()


def api_group(api_version: str) -> str:
    """Group part of an apiVersion string ("apps/v1" -> "apps", "v1" -> "")."""
    return api_version.rpartition("/")[0] if "/" in api_version else ""
