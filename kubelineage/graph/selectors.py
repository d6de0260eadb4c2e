"""Label selector predicates with Kubernetes matching semantics.

A ``Selector`` is an immutable conjunction of ``Requirement`` entries. Its
string form is canonical (requirements sorted, values sorted, and keys and
values percent-encoded so they cannot contain the delimiters) so it can be
embedded in an ``ObjectLabelSelectorKey``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any
from urllib.parse import quote


class Operator(StrEnum):
    """Label requirement operators."""

    EQUALS = "="
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"


# metav1.LabelSelectorRequirement operator names
_EXPRESSION_OPERATORS = {
    "In": Operator.IN,
    "NotIn": Operator.NOT_IN,
    "Exists": Operator.EXISTS,
    "DoesNotExist": Operator.DOES_NOT_EXIST,
}


def _escape(text: str) -> str:
    # "/" stays readable in label keys like kubernetes.io/hostname; every
    # delimiter of the string form ("," "=" "!" " " "(" ")") is encoded
    return quote(text, safe="/")


@dataclass(frozen=True)
class Requirement:
    """A single ``key <operator> values`` constraint."""

    key: str
    operator: Operator
    values: tuple[str, ...] = ()

    def matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        if self.operator is Operator.EXISTS:
            return present
        if self.operator is Operator.DOES_NOT_EXIST:
            return not present
        if self.operator is Operator.NOT_IN:
            return not present or labels[self.key] not in self.values
        # EQUALS and IN
        return present and labels[self.key] in self.values

    def __str__(self) -> str:
        key = _escape(self.key)
        if self.operator is Operator.EXISTS:
            return key
        if self.operator is Operator.DOES_NOT_EXIST:
            return f"!{key}"
        if self.operator is Operator.EQUALS:
            return f"{key}={_escape(self.values[0])}"
        return f"{key} {self.operator.value} ({','.join(_escape(v) for v in self.values)})"


@dataclass(frozen=True)
class Selector:
    """Conjunction of label requirements. An empty selector matches everything."""

    requirements: tuple[Requirement, ...] = ()

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.requirements, key=lambda r: (r.key, r.operator.value, r.values)))
        object.__setattr__(self, "requirements", ordered)

    @classmethod
    def from_set(cls, labels: Mapping[str, Any]) -> Selector:
        """Build an equality selector from a plain label map (Service ``spec.selector`` form)."""
        return cls(tuple(Requirement(str(k), Operator.EQUALS, (str(v),)) for k, v in labels.items()))

    @classmethod
    def from_label_selector(cls, spec: Mapping[str, Any]) -> Selector:
        """Parse a ``metav1.LabelSelector`` mapping.

        Raises:
            ValueError: if ``matchLabels`` or ``matchExpressions`` is malformed
                or uses an unknown operator.
        """
        requirements: list[Requirement] = []

        match_labels = spec.get("matchLabels") or {}
        if not isinstance(match_labels, Mapping):
            raise ValueError(f"matchLabels must be a mapping, got {type(match_labels).__name__}")
        for key, value in match_labels.items():
            requirements.append(Requirement(str(key), Operator.EQUALS, (str(value),)))

        expressions = spec.get("matchExpressions") or []
        if not isinstance(expressions, list):
            raise ValueError(f"matchExpressions must be a list, got {type(expressions).__name__}")
        for expr in expressions:
            if not isinstance(expr, Mapping):
                raise ValueError(f"matchExpressions entry must be a mapping, got {type(expr).__name__}")
            key = expr.get("key")
            if not isinstance(key, str) or not key:
                raise ValueError(f"matchExpressions entry has no key: {expr!r}")
            operator = _EXPRESSION_OPERATORS.get(str(expr.get("operator", "")))
            if operator is None:
                raise ValueError(f"unsupported selector operator {expr.get('operator')!r} for key {key!r}")
            values = expr.get("values") or []
            if not isinstance(values, list):
                raise ValueError(f"values for key {key!r} must be a list")
            if operator in (Operator.IN, Operator.NOT_IN) and not values:
                raise ValueError(f"operator {operator.value!r} for key {key!r} requires values")
            if operator in (Operator.EXISTS, Operator.DOES_NOT_EXIST) and values:
                raise ValueError(f"operator {operator.value!r} for key {key!r} takes no values")
            requirements.append(Requirement(key, operator, tuple(sorted({str(v) for v in values}))))

        return cls(tuple(requirements))

    def empty(self) -> bool:
        return not self.requirements

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(r.matches(labels) for r in self.requirements)

    def __str__(self) -> str:
        return ",".join(str(r) for r in self.requirements)
