"""RDS database instance checks."""

from __future__ import annotations

from typing import List

from cfnscan.severity import Severity

from . import EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule

DB_INSTANCE = "AWS::RDS::DBInstance"
MIN_BACKUP_RETENTION_DAYS = 7


def _enabled(value: object) -> bool:
    # YAML and JSON templates often quote booleans.
    return value is True or str(value).lower() == "true"


@rule(
    "CFN_RDS_001",
    name="RDS Storage Encryption",
    description="Ensure RDS instance storage is encrypted",
    severity=Severity.HIGH,
    category="encryption",
    resource_types=(DB_INSTANCE,),
    frameworks=("CIS", "SOC2", "HIPAA", "PCI-DSS"),
    remediation="Enable StorageEncrypted property on the RDS instance",
    documentation="https://docs.aws.amazon.com/AmazonRDS/latest/UserGuide/Overview.Encryption.html",
)
def storage_encryption(context: EvaluationContext) -> EvaluationOutcome:
    if not _enabled(context.properties.get("StorageEncrypted")):
        return RuleResult(False, "RDS instance does not have storage encryption enabled")
    return RuleResult(True, "RDS instance has storage encryption enabled")


@rule(
    "CFN_RDS_002",
    name="RDS Public Access Disabled",
    description="Ensure RDS instance is not publicly accessible",
    severity=Severity.CRITICAL,
    category="network",
    resource_types=(DB_INSTANCE,),
    frameworks=("CIS", "SOC2", "HIPAA", "PCI-DSS"),
    remediation="Set PubliclyAccessible to false",
    documentation="https://docs.aws.amazon.com/AmazonRDS/latest/UserGuide/USER_VPC.WorkingWithRDSInstanceinaVPC.html",
)
def public_access(context: EvaluationContext) -> EvaluationOutcome:
    if _enabled(context.properties.get("PubliclyAccessible")):
        return RuleResult(False, "RDS instance is publicly accessible")
    return RuleResult(True, "RDS instance is not publicly accessible")


@rule(
    "CFN_RDS_003",
    name="RDS Backup Retention",
    description="Ensure RDS instance keeps automated backups for at least 7 days",
    severity=Severity.MEDIUM,
    category="data-protection",
    resource_types=(DB_INSTANCE,),
    frameworks=("SOC2", "HIPAA"),
    remediation="Set BackupRetentionPeriod to at least 7 days",
    documentation="https://docs.aws.amazon.com/AmazonRDS/latest/UserGuide/USER_WorkingWithAutomatedBackups.html",
)
def backup_retention(context: EvaluationContext) -> EvaluationOutcome:
    raw = context.properties.get("BackupRetentionPeriod")
    try:
        retention = int(raw or 0)
    except (TypeError, ValueError):
        # Unresolved intrinsic such as {"Ref": "RetentionDays"}.
        return RuleResult(True, "RDS backup retention period is set by a template reference")
    if retention < MIN_BACKUP_RETENTION_DAYS:
        return RuleResult(
            False,
            f"RDS backup retention period is {retention} days (should be at least {MIN_BACKUP_RETENTION_DAYS})",
            {"retention_days": retention},
        )
    return RuleResult(True, f"RDS backup retention period is {retention} days")


@rule(
    "CFN_RDS_004",
    name="RDS Deletion Protection",
    description="Ensure RDS instance has deletion protection enabled",
    severity=Severity.MEDIUM,
    category="data-protection",
    resource_types=(DB_INSTANCE,),
    frameworks=("SOC2",),
    remediation="Enable DeletionProtection property",
    documentation="https://docs.aws.amazon.com/AmazonRDS/latest/UserGuide/USER_DeleteInstance.html",
)
def deletion_protection(context: EvaluationContext) -> EvaluationOutcome:
    if not _enabled(context.properties.get("DeletionProtection")):
        return RuleResult(False, "RDS instance does not have deletion protection enabled")
    return RuleResult(True, "RDS instance has deletion protection enabled")


def get_rules() -> List[RuleDescriptor]:
    return [storage_encryption, public_access, backup_retention, deletion_protection]
