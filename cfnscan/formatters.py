"""Render scan findings for consoles, machines and code-scanning tools."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence

from . import __version__
from .result import FileResult, Finding, FindingStatus, Summary, top_findings
from .severity import Severity

SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
TOOL_NAME = "cfn-security-scanner"

Formatter = Callable[[Sequence[Finding], Summary, Sequence[FileResult]], str]


def format_summary_table(summary: Summary, findings: Sequence[Finding], max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Failed':>6}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in summary.as_rows():
        lines.append(f"{severity:<10} | {count:>6}")
    lines.append("-" * len(header))
    lines.append(f"Files     : {summary.files_scanned}")
    lines.append(f"Checks    : {summary.total_checks}")
    lines.append(f"Passed    : {summary.passed}")
    lines.append(f"Failed    : {summary.failed}")
    lines.append(f"Errors    : {summary.errors}")

    highlights = top_findings(list(findings), max_findings)
    if highlights:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in highlights:
            lines.append(f"[{finding.severity.value}] {finding.rule_id} {finding.rule_name} -> {finding.resource_name}")
            lines.append(f"  Location: {finding.file_path}")
    return "\n".join(lines)


def format_console(findings: Sequence[Finding], summary: Summary, files: Sequence[FileResult]) -> str:
    lines: List[str] = []
    by_file: Dict[str, List[Finding]] = {}
    for finding in findings:
        if finding.status is not FindingStatus.PASSED:
            by_file.setdefault(finding.file_path, []).append(finding)

    for file_result in files:
        if file_result.error:
            lines.append(f"{file_result.path}: {file_result.error}")

    for path, entries in by_file.items():
        lines.append("")
        lines.append(path)
        for finding in entries:
            lines.append(
                f"  {finding.status.value:<6} [{finding.severity.value}] {finding.rule_id} "
                f"{finding.resource_name} ({finding.resource_type}): {finding.message}"
            )
            if finding.status is FindingStatus.FAILED and finding.remediation:
                lines.append(f"         Remediation: {finding.remediation}")

    if not by_file:
        lines.append("No failed checks.")
    lines.append("")
    lines.append(format_summary_table(summary, findings))
    return "\n".join(lines).lstrip("\n")


def format_json(findings: Sequence[Finding], summary: Summary, files: Sequence[FileResult]) -> str:
    payload = {
        "version": __version__,
        "scan_date": datetime.now(timezone.utc).isoformat(),
        "summary": summary.to_dict(),
        "results": [finding.to_dict() for finding in findings],
        "files": [file_result.to_dict() for file_result in files],
    }
    return json.dumps(payload, indent=2)


def format_summary(findings: Sequence[Finding], summary: Summary, files: Sequence[FileResult]) -> str:
    counts = ", ".join(f"{severity}: {count}" for severity, count in summary.as_rows())
    return (
        f"Files scanned: {summary.files_scanned}\n"
        f"Checks: {summary.total_checks} (passed {summary.passed}, failed {summary.failed}, errors {summary.errors})\n"
        f"Failed by severity: {counts}"
    )


# ------------------------------------------------------------------
# SARIF
# ------------------------------------------------------------------
def _sarif_level(severity: Severity) -> str:
    if severity in (Severity.CRITICAL, Severity.HIGH):
        return "error"
    if severity is Severity.MEDIUM:
        return "warning"
    return "note"


def _fingerprint(finding: Finding) -> str:
    data = f"{finding.rule_id}:{finding.resource_name}:{finding.file_path}"
    return hashlib.sha1(data.encode("utf-8")).hexdigest()[:16]


def format_sarif(findings: Sequence[Finding], summary: Summary, files: Sequence[FileResult]) -> str:
    rules: Dict[str, Dict[str, Any]] = {}
    for finding in findings:
        if finding.rule_id in rules:
            continue
        rules[finding.rule_id] = {
            "id": finding.rule_id,
            "name": finding.rule_name,
            "shortDescription": {"text": finding.rule_name},
            "fullDescription": {"text": finding.description or finding.rule_name},
            "helpUri": finding.documentation,
            "help": {"text": finding.remediation or "No remediation guidance available"},
            "defaultConfiguration": {"level": _sarif_level(finding.severity)},
            "properties": {
                "category": finding.category,
                "severity": finding.severity.value,
                "tags": [finding.category, finding.severity.value.lower()],
            },
        }
    rule_index = {rule_id: index for index, rule_id in enumerate(rules)}

    results = []
    for finding in findings:
        if not finding.failed:
            continue
        results.append(
            {
                "ruleId": finding.rule_id,
                "ruleIndex": rule_index[finding.rule_id],
                "level": _sarif_level(finding.severity),
                "message": {"text": finding.message},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": finding.file_path, "uriBaseId": "%SRCROOT%"},
                        },
                        "logicalLocations": [
                            {
                                "name": finding.resource_name,
                                "kind": "resource",
                                "fullyQualifiedName": f"{finding.resource_type}/{finding.resource_name}",
                            }
                        ],
                    }
                ],
                "fingerprints": {"primaryLocationLineHash": _fingerprint(finding)},
                "properties": {
                    "resourceName": finding.resource_name,
                    "resourceType": finding.resource_type,
                    "category": finding.category,
                    "remediation": finding.remediation,
                },
            }
        )

    sarif = {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {"driver": {"name": TOOL_NAME, "version": __version__, "rules": list(rules.values())}},
                "results": results,
                "invocations": [
                    {
                        "executionSuccessful": True,
                        "endTimeUtc": datetime.now(timezone.utc).isoformat(),
                    }
                ],
            }
        ],
    }
    return json.dumps(sarif, indent=2)


FORMATTERS: Dict[str, Formatter] = {
    "console": format_console,
    "json": format_json,
    "sarif": format_sarif,
    "summary": format_summary,
}


def get_formatter(name: str) -> Formatter:
    try:
        return FORMATTERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown output format: {name}") from None
