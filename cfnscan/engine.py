"""Evaluate registered rules against a parsed CloudFormation template."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Iterator, List, Mapping, Optional, Set, Tuple

from .registry import RuleRegistry
from .result import Finding, FindingStatus
from .rules import (
    EvaluationContext,
    Inapplicable,
    RuleDescriptor,
    RuleResult,
    TEMPLATE_RESOURCE_NAME,
    TEMPLATE_RESOURCE_TYPE,
)

logger = logging.getLogger(__name__)

Invocation = Tuple[RuleDescriptor, EvaluationContext]


class Engine:
    """Run every registered rule against every applicable resource.

    Rules with no resource-type affinity, or that list the template
    pseudo-type, also run once against the template as a whole. A predicate
    that raises produces an ``ERROR`` finding for that rule/resource pair and
    evaluation carries on with the next pair.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None) -> None:
        self.registry = registry if registry is not None else RuleRegistry()

    def evaluate(
        self,
        template: Mapping[str, Any],
        file_path: str = "",
        registry: Optional[RuleRegistry] = None,
    ) -> List[Finding]:
        """Return the ordered findings for ``template``.

        Predicates must be synchronous here; use :meth:`evaluate_async` when
        any registered predicate returns an awaitable.
        """

        registry = registry if registry is not None else self.registry
        started = time.monotonic()
        findings: List[Finding] = []
        reported_template: Set[str] = set()

        for rule, context in self._invocations(template, file_path, registry):
            try:
                outcome = rule.predicate(context)
                if inspect.isawaitable(outcome):
                    _discard_awaitable(outcome)
                    raise TypeError("predicate returned an awaitable; use evaluate_async()")
                finding = self._build_finding(rule, context, outcome)
            except Exception as exc:
                finding = self._error_finding(rule, context, exc)
            self._collect(findings, reported_template, rule, context, finding)

        self._log_completion(findings, file_path, started)
        return findings

    async def evaluate_async(
        self,
        template: Mapping[str, Any],
        file_path: str = "",
        registry: Optional[RuleRegistry] = None,
    ) -> List[Finding]:
        """Coroutine variant of :meth:`evaluate` that awaits each predicate in turn."""

        registry = registry if registry is not None else self.registry
        started = time.monotonic()
        findings: List[Finding] = []
        reported_template: Set[str] = set()

        for rule, context in self._invocations(template, file_path, registry):
            try:
                outcome = rule.predicate(context)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                finding = self._build_finding(rule, context, outcome)
            except Exception as exc:
                finding = self._error_finding(rule, context, exc)
            self._collect(findings, reported_template, rule, context, finding)

        self._log_completion(findings, file_path, started)
        return findings

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _invocations(
        self,
        template: Mapping[str, Any],
        file_path: str,
        registry: RuleRegistry,
    ) -> Iterator[Invocation]:
        resources = _resource_entries(template)
        rules = registry.get_all()
        logger.info("Evaluating %d rule(s) against %d resource(s) in %s", len(rules), len(resources), file_path)

        for rule in rules:
            for logical_id, resource in resources:
                resource_type = resource.get("Type") or ""
                if not isinstance(resource_type, str):
                    resource_type = str(resource_type)
                if not rule.applies_to(resource_type):
                    continue
                properties = resource.get("Properties")
                yield rule, EvaluationContext(
                    template=template,
                    resource_name=logical_id,
                    resource_type=resource_type,
                    properties=properties if isinstance(properties, Mapping) else {},
                    resource=resource,
                    file_path=file_path,
                )

            if rule.targets_template:
                yield rule, EvaluationContext(
                    template=template,
                    resource_name=None,
                    resource_type=TEMPLATE_RESOURCE_TYPE,
                    properties={},
                    resource={},
                    file_path=file_path,
                )

    def _collect(
        self,
        findings: List[Finding],
        reported_template: Set[str],
        rule: RuleDescriptor,
        context: EvaluationContext,
        finding: Optional[Finding],
    ) -> None:
        if finding is None:
            return
        if context.is_template_level:
            # At most one template-level finding per rule per scan.
            if rule.id in reported_template:
                return
            reported_template.add(rule.id)
        findings.append(finding)

    # ------------------------------------------------------------------
    # Finding construction
    # ------------------------------------------------------------------
    def _build_finding(self, rule: RuleDescriptor, context: EvaluationContext, outcome: Any) -> Optional[Finding]:
        if isinstance(outcome, Inapplicable):
            logger.debug("Rule %s not applicable to %s", rule.id, _display_name(context))
            return None
        if not isinstance(outcome, RuleResult):
            raise TypeError(f"predicate returned unsupported outcome {type(outcome).__name__}")

        status = FindingStatus.PASSED if outcome.passed else FindingStatus.FAILED
        message = outcome.message or ("Check passed" if outcome.passed else "Check failed")
        return self._finding(rule, context, status, message, dict(outcome.details or {}))

    def _error_finding(self, rule: RuleDescriptor, context: EvaluationContext, exc: Exception) -> Finding:
        logger.warning("Rule %s failed on %s: %s", rule.id, _display_name(context), exc)
        logger.debug("Predicate traceback for rule %s", rule.id, exc_info=exc)
        return self._finding(
            rule,
            context,
            FindingStatus.ERROR,
            f"Error evaluating rule: {exc}",
            {"error": type(exc).__name__},
        )

    def _finding(
        self,
        rule: RuleDescriptor,
        context: EvaluationContext,
        status: FindingStatus,
        message: str,
        details: Mapping[str, Any],
    ) -> Finding:
        return Finding(
            rule_id=rule.id,
            rule_name=rule.name,
            description=rule.description,
            severity=rule.severity,
            category=rule.category,
            status=status,
            resource_name=_display_name(context),
            resource_type=context.resource_type,
            file_path=context.file_path,
            message=message,
            remediation=rule.remediation,
            documentation=rule.documentation,
            details=details,
        )

    def _log_completion(self, findings: List[Finding], file_path: str, started: float) -> None:
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info("Completed: %d finding(s) for %s in %.1fms", len(findings), file_path, elapsed_ms)


def _resource_entries(template: Mapping[str, Any]) -> List[Tuple[str, Mapping[str, Any]]]:
    resources = template.get("Resources") if isinstance(template, Mapping) else None
    if not isinstance(resources, Mapping):
        return []
    entries = []
    for logical_id, resource in resources.items():
        entries.append((str(logical_id), resource if isinstance(resource, Mapping) else {}))
    return entries


def _display_name(context: EvaluationContext) -> str:
    return TEMPLATE_RESOURCE_NAME if context.resource_name is None else context.resource_name


def _discard_awaitable(awaitable: Any) -> None:
    close = getattr(awaitable, "close", None)
    if callable(close):
        close()


def evaluate(template: Mapping[str, Any], file_path: str, registry: RuleRegistry) -> List[Finding]:
    """Evaluate ``template`` with a throwaway :class:`Engine`."""

    return Engine(registry).evaluate(template, file_path)


__all__ = ["Engine", "evaluate"]
