"""Dispatch table routing each object to its relationship extractor.

ExtractorRegistry -- maps a (group, kind) pair to one extractor function.
ExtractorError    -- raised by an extractor that cannot read its object; the
                     resolver logs it and skips that object's declarations.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from kubelineage.graph.models import Node, RelationshipMap

Extractor = Callable[[Node], RelationshipMap]


class ExtractorError(Exception):
    """Raised when relationships cannot be extracted from an object."""


class ExtractorRegistry:
    """Registry of extractors keyed by (group, kind).

    Registering the same pair twice replaces the earlier extractor.
    """

    def __init__(self) -> None:
        self._extractors: dict[tuple[str, str], Extractor] = {}

    def register(self, group: str, kind: str, extractor: Extractor | None = None) -> Callable[[Extractor], Extractor]:
        """Register *extractor* for (group, kind).

        Usable directly or as a decorator::

            @registry.register("", "Pod")
            def pod_relationships(node): ...
        """

        def decorator(fn: Extractor) -> Extractor:
            self._extractors[(group, kind)] = fn
            return fn

        if extractor is not None:
            decorator(extractor)
        return decorator

    def get(self, group: str, kind: str) -> Extractor | None:
        return self._extractors.get((group, kind))

    def __contains__(self, item: object) -> bool:
        return item in self._extractors

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._extractors)

    def __len__(self) -> int:
        return len(self._extractors)
