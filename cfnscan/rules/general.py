"""Template-wide checks."""

from __future__ import annotations

import json
import re
from typing import List

from cfnscan.severity import Severity

from . import TEMPLATE_RESOURCE_TYPE, EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule

SENSITIVE_PATTERNS = (
    (re.compile(r"AKIA[0-9A-Z]{16}"), "AWS Access Key ID"),
    (re.compile(r"password\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE), "Hardcoded Password"),
    (re.compile(r"secret\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE), "Hardcoded Secret"),
    (re.compile(r"api[_-]?key\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE), "Hardcoded API Key"),
)

STATEFUL_RESOURCE_TYPES = {
    "AWS::RDS::DBInstance",
    "AWS::RDS::DBCluster",
    "AWS::DynamoDB::Table",
    "AWS::S3::Bucket",
    "AWS::EFS::FileSystem",
    "AWS::ElastiCache::ReplicationGroup",
}


@rule(
    "CFN_GEN_001",
    name="No Hardcoded Credentials",
    description="Ensure templates do not contain hardcoded credentials",
    severity=Severity.CRITICAL,
    category="secrets",
    resource_types=(TEMPLATE_RESOURCE_TYPE,),
    frameworks=("SOC2", "HIPAA", "PCI-DSS"),
    remediation="Use AWS Secrets Manager, Parameter Store, or dynamic references",
    documentation="https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/dynamic-references.html",
)
def hardcoded_credentials(context: EvaluationContext) -> EvaluationOutcome:
    serialized = json.dumps(context.template, default=str)
    for pattern, label in SENSITIVE_PATTERNS:
        if pattern.search(serialized):
            return RuleResult(False, f"Template may contain {label}", {"type": label})
    return RuleResult(True, "No obvious hardcoded credentials detected")


@rule(
    "CFN_GEN_002",
    name="DeletionPolicy Configured",
    description="Ensure stateful resources have DeletionPolicy configured",
    severity=Severity.MEDIUM,
    category="data-protection",
    resource_types=(TEMPLATE_RESOURCE_TYPE,),
    frameworks=("SOC2",),
    remediation="Add DeletionPolicy: Retain or Snapshot to stateful resources",
    documentation="https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/aws-attribute-deletionpolicy.html",
)
def deletion_policy(context: EvaluationContext) -> EvaluationOutcome:
    resources = context.template.get("Resources") or {}
    missing = [
        name
        for name, resource in resources.items()
        if isinstance(resource, dict)
        and resource.get("Type") in STATEFUL_RESOURCE_TYPES
        and not resource.get("DeletionPolicy")
    ]
    if missing:
        return RuleResult(
            False,
            f"Stateful resources without DeletionPolicy: {', '.join(missing)}",
            {"resources": missing},
        )
    return RuleResult(True, "Stateful resources have DeletionPolicy configured")


def get_rules() -> List[RuleDescriptor]:
    return [hardcoded_credentials, deletion_policy]
