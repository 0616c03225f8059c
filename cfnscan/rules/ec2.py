"""Security group ingress checks."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from cfnscan.severity import Severity

from . import EvaluationContext, EvaluationOutcome, RuleDescriptor, RuleResult, rule

SECURITY_GROUP = "AWS::EC2::SecurityGroup"
CIDR_ANY = "0.0.0.0/0"
CIDR_ANY_V6 = "::/0"
FRAMEWORKS = ("CIS", "SOC2", "HIPAA", "PCI-DSS")
DOCUMENTATION = "https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/ec2-security-groups.html"


def _ingress_rules(properties: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    ingress = properties.get("SecurityGroupIngress") or []
    if isinstance(ingress, dict):
        ingress = [ingress]
    for entry in ingress:
        if isinstance(entry, dict):
            yield entry


def _open_cidr(entry: Dict[str, Any]) -> Optional[str]:
    if entry.get("CidrIp") == CIDR_ANY:
        return CIDR_ANY
    if entry.get("CidrIpv6") == CIDR_ANY_V6:
        return CIDR_ANY_V6
    return None


def _as_port(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _open_port_check(context: EvaluationContext, port: int, label: str) -> EvaluationOutcome:
    for entry in _ingress_rules(context.properties):
        cidr = _open_cidr(entry)
        if cidr is None:
            continue
        from_port = _as_port(entry.get("FromPort"))
        to_port = _as_port(entry.get("ToPort"))
        if from_port is None or to_port is None:
            continue
        if from_port <= port <= to_port:
            return RuleResult(
                False,
                f"Security group allows unrestricted {label} access from {cidr}",
                {"port": port, "cidr": cidr},
            )
    return RuleResult(True, f"Security group does not allow unrestricted {label} access")


@rule(
    "CFN_EC2_001",
    name="Security Group Unrestricted SSH",
    description="Ensure no security group allows unrestricted SSH access (0.0.0.0/0)",
    severity=Severity.CRITICAL,
    category="network",
    resource_types=(SECURITY_GROUP,),
    frameworks=FRAMEWORKS,
    remediation="Restrict SSH access to specific IP ranges or use bastion hosts",
    documentation=DOCUMENTATION,
)
def unrestricted_ssh(context: EvaluationContext) -> EvaluationOutcome:
    return _open_port_check(context, 22, "SSH")


@rule(
    "CFN_EC2_002",
    name="Security Group Unrestricted RDP",
    description="Ensure no security group allows unrestricted RDP access (0.0.0.0/0)",
    severity=Severity.CRITICAL,
    category="network",
    resource_types=(SECURITY_GROUP,),
    frameworks=FRAMEWORKS,
    remediation="Restrict RDP access to specific IP ranges or use bastion hosts",
    documentation=DOCUMENTATION,
)
def unrestricted_rdp(context: EvaluationContext) -> EvaluationOutcome:
    return _open_port_check(context, 3389, "RDP")


@rule(
    "CFN_EC2_003",
    name="Security Group Unrestricted All Traffic",
    description="Ensure no security group allows unrestricted inbound traffic",
    severity=Severity.CRITICAL,
    category="network",
    resource_types=(SECURITY_GROUP,),
    frameworks=FRAMEWORKS,
    remediation="Restrict inbound traffic to required ports and IP ranges only",
    documentation=DOCUMENTATION,
)
def unrestricted_all_traffic(context: EvaluationContext) -> EvaluationOutcome:
    for entry in _ingress_rules(context.properties):
        cidr = _open_cidr(entry)
        if cidr and str(entry.get("IpProtocol")) == "-1":
            return RuleResult(
                False,
                f"Security group allows unrestricted inbound traffic (all ports) from {cidr}",
                {"protocol": "-1", "cidr": cidr},
            )
    return RuleResult(True, "Security group does not allow unrestricted all traffic")


def get_rules() -> List[RuleDescriptor]:
    return [unrestricted_ssh, unrestricted_rdp, unrestricted_all_traffic]
