"""Detect overly permissive IAM policies and trust relationships."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from cfnscan.severity import Severity

from . import EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule
from .policy import allow_statements, ensure_list

ROLE = "AWS::IAM::Role"
POLICY_TYPES = ("AWS::IAM::Policy", "AWS::IAM::ManagedPolicy", ROLE)
FRAMEWORKS = ("CIS", "SOC2", "HIPAA", "PCI-DSS")
BEST_PRACTICES = "https://docs.aws.amazon.com/IAM/latest/UserGuide/best-practices.html"

WILDCARD_ACTIONS = {"*", "*:*"}
SENSITIVE_ACTION_PREFIXES = (
    "iam:",
    "sts:",
    "kms:",
    "secretsmanager:",
    "ssm:GetParameter",
    "ec2:RunInstances",
    "lambda:InvokeFunction",
    "s3:DeleteBucket",
)


# ------------------------------------------------------------------
# Statement extraction helpers
# ------------------------------------------------------------------
def _policy_documents(context: EvaluationContext) -> Iterator[Tuple[Dict[str, Any], str]]:
    props = context.properties
    if context.resource_type == ROLE:
        for index, policy in enumerate(props.get("Policies") or []):
            if isinstance(policy, dict) and isinstance(policy.get("PolicyDocument"), dict):
                yield policy["PolicyDocument"], f"Policies[{index}].PolicyDocument"
    elif isinstance(props.get("PolicyDocument"), dict):
        yield props["PolicyDocument"], "PolicyDocument"


def _is_sensitive(action: str) -> bool:
    return action in WILDCARD_ACTIONS or action.startswith(SENSITIVE_ACTION_PREFIXES)


def _first_violation(context: EvaluationContext, check) -> Optional[RuleResult]:
    for document, path in _policy_documents(context):
        for idx, statement in allow_statements(document):
            result = check(statement, f"{path}.Statement[{idx}]")
            if result is not None:
                return result
    return None


# ------------------------------------------------------------------
# Rules
# ------------------------------------------------------------------
@rule(
    "CFN_IAM_001",
    name="IAM Policy No Wildcard Actions",
    description="Ensure IAM policies do not allow wildcard (*) actions",
    severity=Severity.HIGH,
    category="access-control",
    resource_types=POLICY_TYPES,
    frameworks=FRAMEWORKS,
    remediation="Replace wildcard actions with specific required actions",
    documentation=BEST_PRACTICES,
)
def wildcard_actions(context: EvaluationContext) -> EvaluationOutcome:
    def check(statement: Dict[str, Any], path: str) -> Optional[RuleResult]:
        for action in ensure_list(statement.get("Action")):
            if action in WILDCARD_ACTIONS:
                return RuleResult(False, "IAM policy allows wildcard actions (*)", {"action": action, "path": path})
        return None

    return _first_violation(context, check) or RuleResult(True, "IAM policy does not use wildcard actions")


@rule(
    "CFN_IAM_002",
    name="IAM Policy No Wildcard Resources",
    description="Ensure IAM policies do not allow wildcard (*) resources with sensitive actions",
    severity=Severity.HIGH,
    category="access-control",
    resource_types=POLICY_TYPES,
    frameworks=FRAMEWORKS,
    remediation="Specify explicit resource ARNs instead of wildcard",
    documentation=BEST_PRACTICES,
)
def wildcard_resources(context: EvaluationContext) -> EvaluationOutcome:
    def check(statement: Dict[str, Any], path: str) -> Optional[RuleResult]:
        actions = ensure_list(statement.get("Action"))
        resources = ensure_list(statement.get("Resource"))
        if "*" in resources and any(_is_sensitive(action) for action in actions):
            return RuleResult(
                False,
                "IAM policy allows sensitive actions on wildcard resources",
                {"actions": actions, "resources": resources, "path": path},
            )
        return None

    return _first_violation(context, check) or RuleResult(
        True, "IAM policy does not use wildcard resources with sensitive actions"
    )


@rule(
    "CFN_IAM_003",
    name="IAM Role Trust Policy Restricted",
    description="Ensure IAM role trust policies do not allow all principals",
    severity=Severity.CRITICAL,
    category="access-control",
    resource_types=(ROLE,),
    frameworks=FRAMEWORKS,
    remediation="Restrict AssumeRolePolicyDocument to specific principals",
    documentation="https://docs.aws.amazon.com/IAM/latest/UserGuide/id_roles_create_for-user.html",
)
def open_trust_policy(context: EvaluationContext) -> EvaluationOutcome:
    document = context.properties.get("AssumeRolePolicyDocument")
    if not isinstance(document, dict) or not document.get("Statement"):
        return RuleResult(False, "IAM role does not have an AssumeRolePolicyDocument")

    for _, statement in allow_statements(document):
        principal = statement.get("Principal")
        if principal == "*":
            return RuleResult(False, "IAM role trust policy allows all principals (*)")
        if isinstance(principal, dict) and "*" in ensure_list(principal.get("AWS")):
            return RuleResult(False, "IAM role trust policy allows all AWS principals (*)")
    return RuleResult(True, "IAM role trust policy restricts principals")


def get_rules() -> List[RuleDescriptor]:
    return [wildcard_actions, wildcard_resources, open_trust_policy]
