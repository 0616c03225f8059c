"""SQS queue checks."""

from __future__ import annotations

from typing import List

from cfnscan.severity import Severity

from . import INAPPLICABLE, EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule
from .policy import find_public_statement

QUEUE = "AWS::SQS::Queue"
QUEUE_POLICY = "AWS::SQS::QueuePolicy"
FRAMEWORKS = ("SOC2", "HIPAA", "PCI-DSS")


@rule(
    "CFN_SQS_001",
    name="SQS Queue Encryption",
    description="Ensure SQS queue is encrypted at rest",
    severity=Severity.HIGH,
    category="encryption",
    resource_types=(QUEUE,),
    frameworks=FRAMEWORKS,
    remediation="Configure KmsMasterKeyId or enable SqsManagedSseEnabled",
    documentation="https://docs.aws.amazon.com/AWSSimpleQueueService/latest/SQSDeveloperGuide/sqs-server-side-encryption.html",
)
def queue_encryption(context: EvaluationContext) -> EvaluationOutcome:
    props = context.properties
    if props.get("KmsMasterKeyId") or props.get("SqsManagedSseEnabled") is True:
        return RuleResult(True, "SQS queue is encrypted")
    return RuleResult(False, "SQS queue is not encrypted")


@rule(
    "CFN_SQS_002",
    name="SQS Queue Policy Restricted",
    description="Ensure SQS queue policy does not allow public access",
    severity=Severity.CRITICAL,
    category="access-control",
    resource_types=(QUEUE_POLICY,),
    frameworks=FRAMEWORKS,
    remediation="Restrict PolicyDocument to specific principals",
    documentation="https://docs.aws.amazon.com/AWSSimpleQueueService/latest/SQSDeveloperGuide/sqs-basic-examples-of-sqs-policies.html",
)
def queue_policy(context: EvaluationContext) -> EvaluationOutcome:
    document = context.properties.get("PolicyDocument")
    if not isinstance(document, dict):
        return INAPPLICABLE

    violation = find_public_statement(document)
    if violation is None:
        return RuleResult(True, "SQS queue policy restricts access appropriately")
    index, kind = violation
    audience = "unrestricted public access" if kind == "public" else "access to all AWS principals"
    return RuleResult(False, f"SQS queue policy allows {audience}", {"path": f"PolicyDocument.Statement[{index}]"})


def get_rules() -> List[RuleDescriptor]:
    return [queue_encryption, queue_policy]
