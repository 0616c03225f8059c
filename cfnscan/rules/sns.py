"""SNS topic and subscription checks."""

from __future__ import annotations

from typing import List

from cfnscan.severity import Severity

from . import INAPPLICABLE, EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule
from .policy import find_public_statement

TOPIC = "AWS::SNS::Topic"
TOPIC_POLICY = "AWS::SNS::TopicPolicy"
SUBSCRIPTION = "AWS::SNS::Subscription"


@rule(
    "CFN_SNS_001",
    name="SNS Topic Encryption",
    description="Ensure SNS topic is encrypted with KMS",
    severity=Severity.HIGH,
    category="encryption",
    resource_types=(TOPIC,),
    frameworks=("SOC2", "HIPAA", "PCI-DSS"),
    remediation="Configure KmsMasterKeyId for SNS topic encryption",
    documentation="https://docs.aws.amazon.com/sns/latest/dg/sns-server-side-encryption.html",
)
def topic_encryption(context: EvaluationContext) -> EvaluationOutcome:
    if not context.properties.get("KmsMasterKeyId"):
        return RuleResult(False, "SNS topic is not encrypted with KMS")
    return RuleResult(True, "SNS topic is encrypted with KMS")


@rule(
    "CFN_SNS_002",
    name="SNS Topic Policy Restricted",
    description="Ensure SNS topic policy does not allow public access",
    severity=Severity.CRITICAL,
    category="access-control",
    resource_types=(TOPIC_POLICY,),
    frameworks=("SOC2", "HIPAA", "PCI-DSS"),
    remediation="Restrict PolicyDocument to specific principals",
    documentation="https://docs.aws.amazon.com/sns/latest/dg/sns-access-policy-use-cases.html",
)
def topic_policy(context: EvaluationContext) -> EvaluationOutcome:
    document = context.properties.get("PolicyDocument")
    if not isinstance(document, dict):
        return INAPPLICABLE

    violation = find_public_statement(document)
    if violation is None:
        return RuleResult(True, "SNS topic policy restricts access appropriately")
    index, kind = violation
    audience = "unrestricted public access" if kind == "public" else "access to all AWS principals"
    return RuleResult(False, f"SNS topic policy allows {audience}", {"path": f"PolicyDocument.Statement[{index}]"})


@rule(
    "CFN_SNS_003",
    name="SNS Subscription HTTPS Delivery",
    description="Ensure HTTP endpoint subscriptions use HTTPS",
    severity=Severity.MEDIUM,
    category="encryption",
    resource_types=(SUBSCRIPTION,),
    frameworks=("SOC2", "PCI-DSS"),
    remediation="Use the https protocol for HTTP endpoint subscriptions",
    documentation="https://docs.aws.amazon.com/sns/latest/dg/sns-http-https-endpoint-as-subscriber.html",
)
def subscription_protocol(context: EvaluationContext) -> EvaluationOutcome:
    protocol = str(context.properties.get("Protocol", "")).lower()
    if protocol == "http":
        return RuleResult(False, "SNS subscription uses HTTP instead of HTTPS")
    if protocol != "https":
        return INAPPLICABLE
    return RuleResult(True, "SNS subscription uses HTTPS")


def get_rules() -> List[RuleDescriptor]:
    return [topic_encryption, topic_policy, subscription_protocol]
