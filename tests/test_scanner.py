import shutil
from pathlib import Path

import pytest

from cfnscan.catalog import rules_by_category, rules_by_resource_type, rules_by_severity
from cfnscan.result import FindingStatus
from cfnscan.rules import RuleResult, rule
from cfnscan.scanner import ScanOptions, Scanner
from cfnscan.severity import Severity

FIXTURES = Path(__file__).parent / "fixtures"


def test_default_options():
    scanner = Scanner()

    assert scanner.options.fail_on is Severity.HIGH
    assert tuple(scanner.options.skip_rules) == ()
    assert tuple(scanner.options.include_rules) == ()
    assert scanner.options.framework == "all"


def test_scan_insecure_template():
    scanner = Scanner().initialize()

    result = scanner.scan_file(FIXTURES / "insecure.yaml")

    failed = {(finding.rule_id, finding.resource_name) for finding in result.findings if finding.failed}
    assert ("CFN_S3_001", "DataBucket") in failed
    assert ("CFN_EC2_001", "OpenSecurityGroup") in failed
    assert ("CFN_IAM_003", "AdminRole") in failed
    assert ("CFN_LAMBDA_002", "Worker") in failed
    assert ("CFN_GEN_001", "Template") in failed
    assert scanner.stats.files_scanned == 1
    assert scanner.should_fail() is True


def test_scan_secure_template_passes():
    scanner = Scanner().initialize()

    result = scanner.scan_file(FIXTURES / "secure.yaml")

    assert result.error is None
    assert result.findings
    assert all(finding.status is FindingStatus.PASSED for finding in result.findings)
    assert scanner.should_fail() is False
    assert scanner.summary().failed == 0


def test_skip_rules_excludes_rule():
    scanner = Scanner(ScanOptions(skip_rules=("CFN_S3_001",))).initialize()

    assert "CFN_S3_001" not in scanner.registry
    result = scanner.scan_file(FIXTURES / "insecure.yaml")
    assert not any(finding.rule_id == "CFN_S3_001" for finding in result.findings)


def test_include_rules_restricts_registry():
    scanner = Scanner(ScanOptions(include_rules=("CFN_EC2_001", "CFN_IAM_003"))).initialize()

    assert [descriptor.id for descriptor in scanner.registry.get_all()] == ["CFN_EC2_001", "CFN_IAM_003"]


def test_skip_wins_over_include():
    scanner = Scanner(ScanOptions(include_rules=("CFN_EC2_001",), skip_rules=("CFN_EC2_001",))).initialize()

    assert len(scanner.registry) == 0


def test_framework_filter():
    scanner = Scanner(ScanOptions(framework="HIPAA")).initialize()

    assert scanner.registry.get_all()
    assert all("HIPAA" in descriptor.frameworks for descriptor in scanner.registry.get_all())


def test_fail_threshold_respects_severity():
    @rule("LOW_ONLY", name="Low severity failure", severity=Severity.LOW, resource_types=("AWS::S3::Bucket",))
    def low_failure(context):
        return RuleResult(False, "minor")

    lenient = Scanner(ScanOptions(fail_on=Severity.MEDIUM), providers=[lambda: [low_failure]]).initialize()
    strict = Scanner(ScanOptions(fail_on=Severity.LOW), providers=[lambda: [low_failure]]).initialize()

    lenient.scan_file(FIXTURES / "insecure.yaml")
    strict.scan_file(FIXTURES / "insecure.yaml")

    assert lenient.should_fail() is False
    assert strict.should_fail() is True
    assert strict.summary().low == 1


def test_scan_directory_skips_non_templates(tmp_path):
    for name in ("insecure.yaml", "secure.yaml", "not-a-template.json", "broken.yaml"):
        shutil.copy(FIXTURES / name, tmp_path / name)
    nested = tmp_path / "nested"
    nested.mkdir()
    shutil.copy(FIXTURES / "secure.yaml", nested / "stack.yml")

    scanner = Scanner().initialize()
    results = scanner.scan_directory(tmp_path)

    scanned = sorted(Path(result.path).name for result in results)
    assert scanned == ["insecure.yaml", "secure.yaml", "stack.yml"]
    assert scanner.stats.files_scanned == 3


def test_unparseable_file_is_reported_not_raised():
    scanner = Scanner().initialize()

    result = scanner.scan_file(FIXTURES / "broken.yaml")

    assert result.error == "Failed to parse template"
    assert result.findings == []
    assert scanner.stats.errors == 1


def test_missing_file_raises(tmp_path):
    scanner = Scanner().initialize()

    with pytest.raises(FileNotFoundError):
        scanner.scan_file(tmp_path / "absent.yaml")
    with pytest.raises(FileNotFoundError):
        scanner.scan_path(tmp_path / "absent")


def test_faulty_provider_rule_counts_as_error():
    @rule("BROKEN", name="Broken rule", resource_types=("AWS::S3::Bucket",))
    def broken(context):
        raise AttributeError("no such property")

    scanner = Scanner(providers=[lambda: [broken]]).initialize()

    result = scanner.scan_file(FIXTURES / "secure.yaml")

    assert [finding.status for finding in result.findings] == [FindingStatus.ERROR]
    assert scanner.stats.errors == 1
    assert scanner.should_fail() is False


def test_catalog_lookups():
    assert {descriptor.id for descriptor in rules_by_resource_type("AWS::EC2::SecurityGroup")} == {
        "CFN_EC2_001",
        "CFN_EC2_002",
        "CFN_EC2_003",
    }
    assert all(descriptor.severity is Severity.CRITICAL for descriptor in rules_by_severity("critical"))
    assert "CFN_LAMBDA_002" in {descriptor.id for descriptor in rules_by_category("secrets")}


def test_scan_directory_skips_undecodable_files(tmp_path):
    shutil.copy(FIXTURES / "insecure.yaml", tmp_path / "insecure.yaml")
    (tmp_path / "binary.json").write_bytes(b"\xff\xfe\x00garbage")

    scanner = Scanner().initialize()
    results = scanner.scan_directory(tmp_path)

    assert [Path(result.path).name for result in results] == ["insecure.yaml"]
    assert scanner.stats.files_scanned == 1


def test_undecodable_file_is_reported_not_raised(tmp_path):
    target = tmp_path / "stack.yaml"
    target.write_bytes(b"Resources:\n  Bucket:\n    Type: \xff\xfe\n")

    scanner = Scanner().initialize()
    result = scanner.scan_file(target)

    assert result.error == "Failed to parse template"
    assert result.findings == []
    assert scanner.stats.errors == 1
