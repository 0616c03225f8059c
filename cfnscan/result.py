"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .severity import SEVERITY_ORDER, Severity


class FindingStatus(str, Enum):
    """Outcome of one rule evaluated against one resource or template."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Finding:
    """Capture a single rule evaluation result."""

    rule_id: str
    rule_name: str
    severity: Severity
    status: FindingStatus
    resource_name: str
    resource_type: str
    file_path: str
    message: str
    description: str = ""
    category: str = "general"
    remediation: str = ""
    documentation: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status is FindingStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["status"] = self.status.value
        data["details"] = dict(self.details)
        return data


@dataclass
class Summary:
    """Aggregate check counts and failed-finding counts by severity."""

    files_scanned: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0

    def record(self, finding: Finding) -> None:
        if finding.status is FindingStatus.PASSED:
            self.passed += 1
        elif finding.status is FindingStatus.FAILED:
            self.failed += 1
            attr = finding.severity.value.lower()
            setattr(self, attr, getattr(self, attr) + 1)
        else:
            self.errors += 1

    def severity_counts(self) -> Dict[str, int]:
        return {severity.value: getattr(self, severity.value.lower()) for severity in SEVERITY_ORDER}

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return list(self.severity_counts().items())

    @property
    def total_checks(self) -> int:
        return self.passed + self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_scanned": self.files_scanned,
            "total_checks": self.total_checks,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "severity_counts": self.severity_counts(),
        }


@dataclass
class FileResult:
    """Findings produced for one scanned file, or the reason it was skipped."""

    path: str
    findings: List[Finding] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed_count(self) -> int:
        return sum(1 for finding in self.findings if finding.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "error": self.error,
            "findings_count": self.failed_count,
        }


def top_findings(findings: List[Finding], limit: int = 5) -> List[Finding]:
    """Return failed findings ordered by severity ranking."""

    severity_rank = {severity: idx for idx, severity in enumerate(SEVERITY_ORDER)}
    ordered = sorted(
        (finding for finding in findings if finding.failed),
        key=lambda finding: (severity_rank[finding.severity], finding.rule_id),
    )
    return ordered[:limit]
