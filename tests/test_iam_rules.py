from cfnscan.engine import evaluate
from cfnscan.registry import RuleRegistry
from cfnscan.result import FindingStatus
from cfnscan.rules.iam import open_trust_policy, wildcard_actions, wildcard_resources


def run_rule(descriptor, template):
    return evaluate(template, "templates/app.yaml", RuleRegistry([descriptor]))


def role_with_statement(statement, principal=None):
    return {
        "Resources": {
            "FunctionRole": {
                "Type": "AWS::IAM::Role",
                "Properties": {
                    "AssumeRolePolicyDocument": {
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Principal": principal or {"Service": "lambda.amazonaws.com"},
                                "Action": "sts:AssumeRole",
                            }
                        ]
                    },
                    "Policies": [
                        {
                            "PolicyName": "Inline",
                            "PolicyDocument": {"Statement": [statement]},
                        }
                    ],
                },
            }
        }
    }


def test_wildcard_action_fails():
    template = role_with_statement({"Effect": "Allow", "Action": "*", "Resource": "arn:aws:s3:::my-bucket/*"})

    (finding,) = run_rule(wildcard_actions, template)

    assert finding.status is FindingStatus.FAILED
    assert finding.details["path"] == "Policies[0].PolicyDocument.Statement[0]"


def test_deny_statement_is_ignored():
    template = role_with_statement({"Effect": "Deny", "Action": "*", "Resource": "*"})

    (finding,) = run_rule(wildcard_actions, template)

    assert finding.status is FindingStatus.PASSED


def test_sensitive_action_on_wildcard_resource_fails():
    template = role_with_statement({"Effect": "Allow", "Action": ["kms:Decrypt"], "Resource": "*"})

    (finding,) = run_rule(wildcard_resources, template)

    assert finding.status is FindingStatus.FAILED
    assert finding.details["actions"] == ["kms:Decrypt"]


def test_read_only_action_on_wildcard_resource_passes():
    template = role_with_statement({"Effect": "Allow", "Action": "s3:GetObject", "Resource": "*"})

    (finding,) = run_rule(wildcard_resources, template)

    assert finding.status is FindingStatus.PASSED


def test_managed_policy_document_is_checked():
    template = {
        "Resources": {
            "Managed": {
                "Type": "AWS::IAM::ManagedPolicy",
                "Properties": {
                    "PolicyDocument": {"Statement": {"Effect": "Allow", "Action": "*:*", "Resource": "*"}}
                },
            }
        }
    }

    (finding,) = run_rule(wildcard_actions, template)

    assert finding.status is FindingStatus.FAILED
    assert finding.details["action"] == "*:*"


def test_trust_policy_open_to_everyone_fails():
    template = role_with_statement({"Effect": "Allow", "Action": "s3:GetObject", "Resource": "*"}, principal="*")

    (finding,) = run_rule(open_trust_policy, template)

    assert finding.status is FindingStatus.FAILED
    assert finding.message == "IAM role trust policy allows all principals (*)"


def test_trust_policy_open_to_all_aws_accounts_fails():
    template = role_with_statement(
        {"Effect": "Allow", "Action": "s3:GetObject", "Resource": "*"},
        principal={"AWS": ["arn:aws:iam::123456789012:root", "*"]},
    )

    (finding,) = run_rule(open_trust_policy, template)

    assert finding.status is FindingStatus.FAILED


def test_missing_trust_policy_fails():
    template = {"Resources": {"Role": {"Type": "AWS::IAM::Role", "Properties": {}}}}

    (finding,) = run_rule(open_trust_policy, template)

    assert finding.status is FindingStatus.FAILED
    assert finding.resource_name == "Role"
