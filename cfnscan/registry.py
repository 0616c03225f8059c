"""Keyed store of the rules executed during a scan session."""

from __future__ import annotations

import logging
import dataclasses
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .rules import RuleDescriptor
from .severity import Severity

logger = logging.getLogger(__name__)

# Mapping keys accepted from rule authors, normalized to descriptor fields.
_FIELD_ALIASES = {
    "evaluate": "predicate",
    "resourceTypes": "resource_types",
    "applicableResourceTypes": "resource_types",
    "applicable_resource_types": "resource_types",
}
_DESCRIPTOR_FIELDS = {field.name for field in dataclasses.fields(RuleDescriptor)}


class ValidationError(ValueError):
    """Raised when a rule descriptor cannot be registered."""


class RuleRegistry:
    """Hold the authoritative, ordered set of rules for one scan session.

    Registering an id that is already present replaces the stored descriptor
    but keeps its original position, so finding order only depends on the
    order in which ids were first seen.
    """

    def __init__(self, rules: Optional[Iterable[Union[RuleDescriptor, Mapping[str, Any]]]] = None) -> None:
        self._rules: Dict[str, RuleDescriptor] = {}
        if rules:
            self.register_all(rules)

    def register(self, descriptor: Union[RuleDescriptor, Mapping[str, Any]]) -> RuleDescriptor:
        """Validate ``descriptor``, apply defaults and store it by id."""

        normalized = self._normalize(descriptor)
        if normalized.id in self._rules:
            logger.warning("Rule %s registered twice; keeping the latest definition", normalized.id)
        else:
            logger.debug("Registered rule %s (%s)", normalized.id, normalized.severity.value)
        self._rules[normalized.id] = normalized
        return normalized

    def register_all(self, descriptors: Iterable[Union[RuleDescriptor, Mapping[str, Any]]]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def get_all(self) -> List[RuleDescriptor]:
        """Return every registered rule in registration order."""

        return list(self._rules.values())

    def get_by_id(self, rule_id: str) -> Optional[RuleDescriptor]:
        return self._rules.get(rule_id)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[RuleDescriptor]:
        return iter(self.get_all())

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _normalize(self, descriptor: Union[RuleDescriptor, Mapping[str, Any]]) -> RuleDescriptor:
        if isinstance(descriptor, RuleDescriptor):
            fields: Dict[str, Any] = {
                "id": descriptor.id,
                "predicate": descriptor.predicate,
                "name": descriptor.name,
                "description": descriptor.description,
                "severity": descriptor.severity,
                "category": descriptor.category,
                "resource_types": descriptor.resource_types,
                "frameworks": descriptor.frameworks,
                "remediation": descriptor.remediation,
                "documentation": descriptor.documentation,
            }
        elif isinstance(descriptor, Mapping):
            fields = {_FIELD_ALIASES.get(key, key): value for key, value in descriptor.items()}
            unknown = sorted(set(fields) - _DESCRIPTOR_FIELDS)
            if unknown:
                raise ValidationError(f"Rule {descriptor.get('id')!r} has unknown field(s): {', '.join(unknown)}")
        else:
            raise ValidationError(f"Unsupported rule descriptor type: {type(descriptor).__name__}")

        rule_id = fields.get("id")
        if not rule_id or not isinstance(rule_id, str):
            raise ValidationError("Rule must have an id and a predicate")
        predicate = fields.get("predicate")
        if predicate is None:
            raise ValidationError(f"Rule {rule_id} must have an id and a predicate")
        if not callable(predicate):
            raise ValidationError(f"Rule {rule_id} predicate is not callable")

        try:
            severity = Severity.parse(fields.get("severity") or Severity.MEDIUM)
        except ValueError as exc:
            raise ValidationError(f"Rule {rule_id} has unknown severity {fields.get('severity')!r}") from exc

        return RuleDescriptor(
            id=rule_id,
            predicate=predicate,
            name=fields.get("name") or rule_id,
            description=fields.get("description") or "",
            severity=severity,
            category=fields.get("category") or "general",
            resource_types=self._as_frozenset(fields.get("resource_types")),
            frameworks=self._as_frozenset(fields.get("frameworks")),
            remediation=fields.get("remediation") or "",
            documentation=fields.get("documentation") or "",
        )

    def _as_frozenset(self, value: Any) -> frozenset:
        if not value:
            return frozenset()
        if isinstance(value, str):
            return frozenset([value])
        return frozenset(str(item) for item in value)


__all__ = ["RuleRegistry", "ValidationError"]
