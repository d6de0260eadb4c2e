"""Load Kubernetes object manifests from JSON or YAML files.

Accepts single objects, multi-document YAML streams, and list containers
(``kind: List`` or any ``*List`` kind with ``items``) as produced by
``kubectl get -o json|yaml``.

Hand-written manifests usually carry no ``metadata.uid``. Such objects are
given their reference key (group/kind/namespace/name) as a placeholder UID so
that distinct objects stay distinct in the graph.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from kubelineage.graph.models import Node
from kubelineage.observability.logging import get_logger

_logger = get_logger("loader")


class LoaderError(Exception):
    """Raised when a manifest file cannot be read or parsed."""


def _flatten(doc: Any, source: str) -> list[dict[str, Any]]:
    if doc is None:
        return []
    if isinstance(doc, list):
        objects: list[dict[str, Any]] = []
        for item in doc:
            objects.extend(_flatten(item, source))
        return objects
    if not isinstance(doc, Mapping):
        raise LoaderError(f"{source}: expected an object or list, got {type(doc).__name__}")
    kind = doc.get("kind")
    if isinstance(kind, str) and kind.endswith("List") and isinstance(doc.get("items"), list):
        return _flatten(doc["items"], source)
    return [dict(doc)]


def _ensure_uid(obj: dict[str, Any], source: str) -> dict[str, Any]:
    metadata = obj.get("metadata")
    if not isinstance(metadata, Mapping):
        metadata = {}
    uid = metadata.get("uid")
    if isinstance(uid, str) and uid:
        return obj
    placeholder = Node.from_object(obj).reference_key()
    _logger.debug("placeholder_uid_assigned", source=source, uid=placeholder)
    obj["metadata"] = {**metadata, "uid": placeholder}
    return obj


def parse_objects(text: str, source: str = "<string>", fmt: str = "yaml") -> list[dict[str, Any]]:
    """Parse manifest text in the given format ("json" or "yaml")."""
    try:
        if fmt == "json":
            docs: list[Any] = [json.loads(text)]
        else:
            docs = list(yaml.safe_load_all(text))
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise LoaderError(f"{source}: {exc}") from exc

    objects: list[dict[str, Any]] = []
    for doc in docs:
        objects.extend(_ensure_uid(obj, source) for obj in _flatten(doc, source))
    return objects


def load_objects(paths: Iterable[str | Path]) -> list[dict[str, Any]]:
    """Read every path (``-`` for stdin) and return the objects in file order."""
    objects: list[dict[str, Any]] = []
    for path in paths:
        source = str(path)
        try:
            text = sys.stdin.read() if source == "-" else Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise LoaderError(f"{source}: {exc.strerror or exc}") from exc
        fmt = "json" if source.endswith(".json") else "yaml"
        loaded = parse_objects(text, source, fmt)
        _logger.debug("manifests_loaded", source=source, objects=len(loaded))
        objects.extend(loaded)
    return objects
