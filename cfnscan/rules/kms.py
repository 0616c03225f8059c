"""KMS key checks."""

from __future__ import annotations

from typing import List

from cfnscan.severity import Severity

from . import INAPPLICABLE, EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule
from .policy import find_public_statement

KEY = "AWS::KMS::Key"
FRAMEWORKS = ("CIS", "SOC2", "HIPAA", "PCI-DSS")


@rule(
    "CFN_KMS_001",
    name="KMS Key Rotation Enabled",
    description="Ensure symmetric KMS keys rotate automatically",
    severity=Severity.MEDIUM,
    category="encryption",
    resource_types=(KEY,),
    frameworks=FRAMEWORKS,
    remediation="Set EnableKeyRotation to true",
    documentation="https://docs.aws.amazon.com/kms/latest/developerguide/rotate-keys.html",
)
def key_rotation(context: EvaluationContext) -> EvaluationOutcome:
    # Rotation only exists for symmetric keys.
    if context.properties.get("KeySpec", "SYMMETRIC_DEFAULT") != "SYMMETRIC_DEFAULT":
        return INAPPLICABLE
    if context.properties.get("EnableKeyRotation") is not True:
        return RuleResult(False, "KMS key does not have automatic rotation enabled")
    return RuleResult(True, "KMS key has automatic rotation enabled")


@rule(
    "CFN_KMS_002",
    name="KMS Key Policy Restricted",
    description="Ensure KMS key policy does not allow public access",
    severity=Severity.CRITICAL,
    category="access-control",
    resource_types=(KEY,),
    frameworks=FRAMEWORKS,
    remediation="Restrict KeyPolicy to specific principals",
    documentation="https://docs.aws.amazon.com/kms/latest/developerguide/key-policies.html",
)
def key_policy(context: EvaluationContext) -> EvaluationOutcome:
    policy = context.properties.get("KeyPolicy")
    if not isinstance(policy, dict) or not policy.get("Statement"):
        return INAPPLICABLE

    violation = find_public_statement(policy)
    if violation is None:
        return RuleResult(True, "KMS key policy restricts access appropriately")
    index, kind = violation
    audience = "unrestricted public access" if kind == "public" else "access to all AWS principals"
    return RuleResult(False, f"KMS key policy allows {audience}", {"path": f"KeyPolicy.Statement[{index}]"})


def get_rules() -> List[RuleDescriptor]:
    return [key_rotation, key_policy]
