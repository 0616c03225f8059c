"""Lambda function environment checks."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from cfnscan.severity import Severity

from . import INAPPLICABLE, EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule

FUNCTION_TYPES = ("AWS::Lambda::Function", "AWS::Serverless::Function")
ENV_DOCUMENTATION = "https://docs.aws.amazon.com/lambda/latest/dg/configuration-envvars.html"

KEY_PATTERN = re.compile(r"(?i)(secret|token|api[_-]?key|password|passwd|access[_-]?key|private|credential)")
LONG_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_\-]{24,}")
AWS_ACCESS_KEY_PATTERN = re.compile(r"(?:A3T|AKIA|ASIA)[0-9A-Z]{16}")
JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_\-]+?\.[A-Za-z0-9_\-]+?\.[A-Za-z0-9_\-]+")
PLACEHOLDER_HINTS = ("dummy", "example", "placeholder", "sample", "changeme")
DYNAMIC_REFERENCE = "{{resolve:"


def _environment_variables(properties: Dict[str, Any]) -> Dict[str, Any]:
    environment = properties.get("Environment") or {}
    variables = environment.get("Variables") if isinstance(environment, dict) else None
    return variables if isinstance(variables, dict) else {}


def _classify_value(value: str) -> Optional[str]:
    if DYNAMIC_REFERENCE in value:
        return None
    lowered = value.lower()
    if any(hint in lowered for hint in PLACEHOLDER_HINTS):
        return None
    if AWS_ACCESS_KEY_PATTERN.search(value):
        return "aws_access_key"
    if JWT_PATTERN.search(value):
        return "jwt"
    if LONG_TOKEN_PATTERN.search(value):
        return "long_token"
    return None


@rule(
    "CFN_LAMBDA_001",
    name="Lambda Function Environment Variables Encryption",
    description="Ensure Lambda function environment variables are encrypted with KMS",
    severity=Severity.HIGH,
    category="encryption",
    resource_types=FUNCTION_TYPES,
    frameworks=("SOC2", "HIPAA", "PCI-DSS"),
    remediation="Configure KmsKeyArn for environment variable encryption",
    documentation=ENV_DOCUMENTATION,
)
def environment_encryption(context: EvaluationContext) -> EvaluationOutcome:
    if not _environment_variables(context.properties):
        return INAPPLICABLE
    if not context.properties.get("KmsKeyArn"):
        return RuleResult(False, "Lambda function environment variables are not encrypted with a custom KMS key")
    return RuleResult(True, "Lambda function environment variables are encrypted with KMS")


@rule(
    "CFN_LAMBDA_002",
    name="Lambda Environment Hardcoded Secrets",
    description="Ensure Lambda environment variables do not embed secret values",
    severity=Severity.CRITICAL,
    category="secrets",
    resource_types=FUNCTION_TYPES,
    frameworks=("SOC2", "PCI-DSS"),
    remediation=(
        "Move sensitive values to AWS Secrets Manager or SSM Parameter Store and reference them "
        "with {{resolve:secretsmanager:...}} dynamic references."
    ),
    documentation=ENV_DOCUMENTATION,
)
def environment_secrets(context: EvaluationContext) -> EvaluationOutcome:
    variables = _environment_variables(context.properties)
    if not variables:
        return INAPPLICABLE

    suspicious: List[Dict[str, str]] = []
    for name, value in variables.items():
        if not isinstance(value, str):
            continue  # intrinsic functions resolve at deploy time
        indicator = _classify_value(value)
        if indicator and (indicator != "long_token" or KEY_PATTERN.search(str(name))):
            suspicious.append({"variable": str(name), "indicator": indicator})

    if suspicious:
        names = ", ".join(item["variable"] for item in suspicious)
        return RuleResult(False, f"Lambda environment contains hardcoded secrets: {names}", {"variables": suspicious})
    return RuleResult(True, "No hardcoded secrets found in Lambda environment")


def get_rules() -> List[RuleDescriptor]:
    return [environment_encryption, environment_secrets]
