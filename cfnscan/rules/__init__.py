"""Rule descriptors and the values exchanged with rule predicates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Mapping, Optional, Union

from cfnscan.severity import Severity

TEMPLATE_RESOURCE_TYPE = "AWS::CloudFormation::Template"
TEMPLATE_RESOURCE_NAME = "Template"


class Inapplicable:
    """Outcome returned by a predicate that has no opinion on a resource."""

    _instance: Optional["Inapplicable"] = None

    def __new__(cls) -> "Inapplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INAPPLICABLE"


INAPPLICABLE = Inapplicable()


@dataclass(frozen=True)
class RuleResult:
    """Pass/fail verdict returned by a predicate."""

    passed: bool
    message: str = ""
    details: Optional[Mapping[str, Any]] = None


EvaluationOutcome = Union[RuleResult, Inapplicable]


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs handed to a predicate for one invocation."""

    template: Mapping[str, Any]
    resource_name: Optional[str]
    resource_type: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    resource: Mapping[str, Any] = field(default_factory=dict)
    file_path: str = ""

    @property
    def is_template_level(self) -> bool:
        return self.resource_name is None


Predicate = Callable[
    [EvaluationContext],
    Union[EvaluationOutcome, Awaitable[EvaluationOutcome]],
]


@dataclass(frozen=True)
class RuleDescriptor:
    """Metadata and predicate for a single security check."""

    id: str
    predicate: Predicate
    name: str = ""
    description: str = ""
    severity: Severity = Severity.MEDIUM
    category: str = "general"
    resource_types: FrozenSet[str] = frozenset()
    frameworks: FrozenSet[str] = frozenset()
    remediation: str = ""
    documentation: str = ""

    @property
    def targets_template(self) -> bool:
        """Return ``True`` when the rule runs once against the whole template."""

        return not self.resource_types or TEMPLATE_RESOURCE_TYPE in self.resource_types

    def applies_to(self, resource_type: str) -> bool:
        return not self.resource_types or resource_type in self.resource_types

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
            "category": self.category,
            "resource_types": sorted(self.resource_types),
            "frameworks": sorted(self.frameworks),
            "remediation": self.remediation,
            "documentation": self.documentation,
        }


def rule(
    id: str,
    *,
    name: str,
    description: str = "",
    severity: Severity = Severity.MEDIUM,
    category: str = "general",
    resource_types: tuple = (),
    frameworks: tuple = (),
    remediation: str = "",
    documentation: str = "",
) -> Callable[[Predicate], RuleDescriptor]:
    """Decorator turning a predicate function into a :class:`RuleDescriptor`."""

    def decorator(func: Predicate) -> RuleDescriptor:
        return RuleDescriptor(
            id=id,
            predicate=func,
            name=name,
            description=description,
            severity=severity,
            category=category,
            resource_types=frozenset(resource_types),
            frameworks=frozenset(frameworks),
            remediation=remediation,
            documentation=documentation,
        )

    return decorator


__all__ = [
    "EvaluationContext",
    "EvaluationOutcome",
    "INAPPLICABLE",
    "Inapplicable",
    "Predicate",
    "RuleDescriptor",
    "RuleResult",
    "TEMPLATE_RESOURCE_NAME",
    "TEMPLATE_RESOURCE_TYPE",
    "rule",
]
