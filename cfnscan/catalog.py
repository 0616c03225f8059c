"""Assemble rule registries from rule-source providers."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence

from .registry import RuleRegistry
from .rules import RuleDescriptor, ec2, general, iam, kms, lambda_function, rds, s3, sns, sqs
from .severity import Severity

RuleProvider = Callable[[], Iterable[RuleDescriptor]]

DEFAULT_PROVIDERS: Sequence[RuleProvider] = (
    s3.get_rules,
    ec2.get_rules,
    iam.get_rules,
    lambda_function.get_rules,
    rds.get_rules,
    kms.get_rules,
    sqs.get_rules,
    sns.get_rules,
    general.get_rules,
)


def load_all_rules(providers: Optional[Sequence[RuleProvider]] = None) -> List[RuleDescriptor]:
    """Concatenate the rules supplied by each provider, in provider order."""

    rules: List[RuleDescriptor] = []
    for provider in providers if providers is not None else DEFAULT_PROVIDERS:
        rules.extend(provider())
    return rules


def load_registry(
    providers: Optional[Sequence[RuleProvider]] = None,
    predicate: Optional[Callable[[RuleDescriptor], bool]] = None,
) -> RuleRegistry:
    """Return a fresh registry holding every provided rule accepted by ``predicate``."""

    registry = RuleRegistry()
    for descriptor in load_all_rules(providers):
        if predicate is None or predicate(descriptor):
            registry.register(descriptor)
    return registry


def rules_by_category(category: str) -> List[RuleDescriptor]:
    return [descriptor for descriptor in load_all_rules() if descriptor.category == category]


def rules_by_severity(severity: Severity | str) -> List[RuleDescriptor]:
    wanted = Severity.parse(severity)
    return [descriptor for descriptor in load_all_rules() if descriptor.severity is wanted]


def rules_by_resource_type(resource_type: str) -> List[RuleDescriptor]:
    return [descriptor for descriptor in load_all_rules() if resource_type in descriptor.resource_types]
