"""Scan CloudFormation files and directories with the evaluation engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .catalog import RuleProvider, load_registry
from .engine import Engine
from .registry import RuleRegistry
from .result import FileResult, Finding, FindingStatus, Summary
from .rules import RuleDescriptor
from .severity import Severity
from .utils import TemplateLoadError, is_cloudformation_template, iter_template_files, load_template
from .utils.code import DEFAULT_PATTERNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOptions:
    """Rule selection and failure threshold for a scan session."""

    fail_on: Severity = Severity.HIGH
    skip_rules: Sequence[str] = ()
    include_rules: Sequence[str] = ()
    framework: str = "all"

    def includes(self, descriptor: RuleDescriptor) -> bool:
        if descriptor.id in self.skip_rules:
            return False
        if self.include_rules:
            return descriptor.id in self.include_rules
        if self.framework != "all":
            return self.framework in descriptor.frameworks
        return True


class Scanner:
    """Run the selected rules over files and keep running totals."""

    def __init__(
        self,
        options: Optional[ScanOptions] = None,
        providers: Optional[Sequence[RuleProvider]] = None,
    ) -> None:
        self.options = options or ScanOptions()
        self._providers = providers
        self.registry = RuleRegistry()
        self.engine = Engine(self.registry)
        self.findings: List[Finding] = []
        self.stats = Summary()

    def initialize(self) -> "Scanner":
        """Populate the registry with every provided rule the options select."""

        self.registry = load_registry(self._providers, predicate=self.options.includes)
        self.engine = Engine(self.registry)
        logger.info("Loaded %d rule(s)", len(self.registry))
        return self

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------
    def scan_file(self, path: Path | str) -> FileResult:
        absolute = Path(path).resolve()
        if not absolute.is_file():
            raise FileNotFoundError(f"File not found: {absolute}")

        try:
            template = load_template(absolute)
        except TemplateLoadError as exc:
            logger.warning("Error parsing %s: %s", absolute, exc)
            self.stats.errors += 1
            return FileResult(path=str(absolute), error="Failed to parse template")

        self.stats.files_scanned += 1
        findings = self.engine.evaluate(template or {}, str(absolute))
        self._record(findings)
        return FileResult(path=str(absolute), findings=findings)

    def scan_directory(self, path: Path | str, patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[FileResult]:
        results: List[FileResult] = []
        for candidate in iter_template_files(Path(path), patterns):
            if not self._looks_like_template(candidate):
                logger.debug("Skipping %s: not a CloudFormation template", candidate)
                continue
            results.append(self.scan_file(candidate))
        return results

    def scan_path(self, path: Path | str) -> List[FileResult]:
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(f"Path not found: {target.resolve()}")
        if target.is_dir():
            return self.scan_directory(target)
        return [self.scan_file(target)]

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    def summary(self) -> Summary:
        return self.stats

    def should_fail(self) -> bool:
        """Return ``True`` when a failed finding meets the severity threshold."""

        return any(finding.failed and finding.severity.at_least(self.options.fail_on) for finding in self.findings)

    def failed_findings(self) -> List[Finding]:
        return [finding for finding in self.findings if finding.status is FindingStatus.FAILED]

    def _record(self, findings: List[Finding]) -> None:
        for finding in findings:
            self.findings.append(finding)
            self.stats.record(finding)

    def _looks_like_template(self, path: Path) -> bool:
        try:
            return is_cloudformation_template(load_template(path))
        except TemplateLoadError:
            return False
