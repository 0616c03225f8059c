"""S3 bucket checks."""

from __future__ import annotations

from typing import List

from cfnscan.severity import Severity

from . import EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule

BUCKET = "AWS::S3::Bucket"
PUBLIC_ACCESS_SETTINGS = (
    "BlockPublicAcls",
    "BlockPublicPolicy",
    "IgnorePublicAcls",
    "RestrictPublicBuckets",
)


@rule(
    "CFN_S3_001",
    name="S3 Bucket Encryption Enabled",
    description="Ensure S3 bucket has server-side encryption enabled",
    severity=Severity.HIGH,
    category="encryption",
    resource_types=(BUCKET,),
    frameworks=("CIS", "SOC2", "HIPAA", "PCI-DSS"),
    remediation="Enable server-side encryption using SSE-S3, SSE-KMS, or SSE-C",
    documentation="https://docs.aws.amazon.com/AmazonS3/latest/userguide/serv-side-encryption.html",
)
def bucket_encryption(context: EvaluationContext) -> EvaluationOutcome:
    encryption = context.properties.get("BucketEncryption")
    if not encryption:
        return RuleResult(False, "S3 bucket does not have encryption enabled")

    configuration = encryption.get("ServerSideEncryptionConfiguration")
    if not isinstance(configuration, list) or not configuration:
        return RuleResult(False, "S3 bucket encryption configuration is missing or empty")
    return RuleResult(True, "S3 bucket has encryption enabled")


@rule(
    "CFN_S3_002",
    name="S3 Bucket Public Access Block",
    description="Ensure S3 bucket has public access block configuration",
    severity=Severity.CRITICAL,
    category="access-control",
    resource_types=(BUCKET,),
    frameworks=("CIS", "SOC2", "HIPAA", "PCI-DSS"),
    remediation="Enable PublicAccessBlockConfiguration with all settings set to true",
    documentation="https://docs.aws.amazon.com/AmazonS3/latest/userguide/access-control-block-public-access.html",
)
def public_access_block(context: EvaluationContext) -> EvaluationOutcome:
    block = context.properties.get("PublicAccessBlockConfiguration")
    if not block:
        return RuleResult(False, "S3 bucket does not have public access block configuration")

    missing = [setting for setting in PUBLIC_ACCESS_SETTINGS if block.get(setting) is not True]
    if missing:
        return RuleResult(
            False,
            f"S3 bucket public access block is missing: {', '.join(missing)}",
            {"missing_settings": missing},
        )
    return RuleResult(True, "S3 bucket blocks all public access")


@rule(
    "CFN_S3_003",
    name="S3 Bucket Versioning Enabled",
    description="Ensure S3 bucket has versioning enabled",
    severity=Severity.MEDIUM,
    category="data-protection",
    resource_types=(BUCKET,),
    frameworks=("SOC2", "HIPAA"),
    remediation="Set VersioningConfiguration.Status to Enabled",
    documentation="https://docs.aws.amazon.com/AmazonS3/latest/userguide/Versioning.html",
)
def bucket_versioning(context: EvaluationContext) -> EvaluationOutcome:
    versioning = context.properties.get("VersioningConfiguration") or {}
    if versioning.get("Status") != "Enabled":
        return RuleResult(False, "S3 bucket versioning is not enabled")
    return RuleResult(True, "S3 bucket versioning is enabled")


def get_rules() -> List[RuleDescriptor]:
    return [bucket_encryption, public_access_block, bucket_versioning]
