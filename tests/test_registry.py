import pytest

from cfnscan.registry import RuleRegistry, ValidationError
from cfnscan.rules import RuleDescriptor, RuleResult
from cfnscan.severity import Severity


def passing(context):
    return RuleResult(True)


def test_register_applies_defaults_to_mapping():
    registry = RuleRegistry()

    stored = registry.register({"id": "CUSTOM_001", "evaluate": passing})

    assert stored.name == "CUSTOM_001"
    assert stored.description == ""
    assert stored.severity is Severity.MEDIUM
    assert stored.category == "general"
    assert stored.resource_types == frozenset()
    assert stored.frameworks == frozenset()
    assert stored.remediation == ""
    assert stored.documentation == ""
    assert stored.predicate is passing


def test_register_accepts_camel_case_fields():
    registry = RuleRegistry()

    stored = registry.register(
        {
            "id": "CUSTOM_002",
            "evaluate": passing,
            "severity": "critical",
            "resourceTypes": ["AWS::S3::Bucket"],
            "frameworks": ["HIPAA"],
        }
    )

    assert stored.severity is Severity.CRITICAL
    assert stored.resource_types == frozenset({"AWS::S3::Bucket"})
    assert stored.frameworks == frozenset({"HIPAA"})


@pytest.mark.parametrize(
    "descriptor",
    [
        {"evaluate": passing},
        {"id": "", "evaluate": passing},
        {"id": "NO_PREDICATE"},
        {"id": "NOT_CALLABLE", "evaluate": "yes"},
        {"id": "BAD_SEVERITY", "evaluate": passing, "severity": "URGENT"},
    ],
)
def test_register_rejects_malformed_descriptors(descriptor):
    registry = RuleRegistry()

    with pytest.raises(ValidationError):
        registry.register(descriptor)

    assert len(registry) == 0


def test_get_all_preserves_registration_order():
    registry = RuleRegistry()
    for rule_id in ("C", "A", "B"):
        registry.register({"id": rule_id, "evaluate": passing})

    assert [descriptor.id for descriptor in registry.get_all()] == ["C", "A", "B"]


def test_duplicate_id_overwrites_in_place():
    registry = RuleRegistry()
    registry.register({"id": "FIRST", "evaluate": passing})
    registry.register({"id": "SECOND", "evaluate": passing})

    registry.register({"id": "FIRST", "evaluate": passing, "severity": "LOW", "name": "Replacement"})

    assert [descriptor.id for descriptor in registry] == ["FIRST", "SECOND"]
    assert registry.get_by_id("FIRST").name == "Replacement"
    assert registry.get_by_id("FIRST").severity is Severity.LOW


def test_get_by_id_missing_returns_none():
    registry = RuleRegistry([RuleDescriptor(id="KNOWN", predicate=passing)])

    assert registry.get_by_id("UNKNOWN") is None
    assert "KNOWN" in registry
    assert "UNKNOWN" not in registry


def test_register_descriptor_fills_empty_name():
    registry = RuleRegistry()

    stored = registry.register(RuleDescriptor(id="DESC", predicate=passing, category=""))

    assert stored.name == "DESC"
    assert stored.category == "general"


@pytest.mark.parametrize("key", ["applicableResourceTypes", "applicable_resource_types", "resource_types"])
def test_register_accepts_applicable_resource_type_keys(key):
    registry = RuleRegistry()

    stored = registry.register({"id": "SCOPED", "evaluate": passing, key: ["AWS::S3::Bucket"]})

    assert stored.resource_types == frozenset({"AWS::S3::Bucket"})
    assert not stored.targets_template


def test_register_rejects_unknown_fields():
    registry = RuleRegistry()

    with pytest.raises(ValidationError, match="resourceType"):
        registry.register({"id": "TYPO", "evaluate": passing, "resourceType": ["AWS::S3::Bucket"]})

    assert "TYPO" not in registry
