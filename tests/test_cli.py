import json
from pathlib import Path

from cfnscan import cli

FIXTURES = Path(__file__).parent / "fixtures"


def test_cli_generates_json_report(tmp_path, capsys):
    output_path = tmp_path / "scan.json"

    exit_code = cli.main(
        [
            str(FIXTURES / "insecure.yaml"),
            "--output",
            "json",
            "--output-file",
            str(output_path),
        ]
    )

    captured = capsys.readouterr()
    assert "Report written to" in captured.out
    assert exit_code == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["severity_counts"]["CRITICAL"] >= 1
    assert data["summary"]["files_scanned"] == 1
    assert {"rule_id", "status", "resource_name", "severity", "details"} <= set(data["results"][0])


def test_cli_passes_on_clean_template(tmp_path, capsys):
    template_path = tmp_path / "clean.yaml"
    template_path.write_text(
        """
AWSTemplateFormatVersion: "2010-09-09"
Resources:
  Topic:
    Type: AWS::SNS::Topic
    Properties:
      TopicName: alerts
      KmsMasterKeyId: alias/aws/sns
        """.strip()
    )

    exit_code = cli.main([str(template_path)])

    captured = capsys.readouterr()
    assert "Scan Summary" in captured.out
    assert "No failed checks." in captured.out
    assert exit_code == 0


def test_cli_fail_on_threshold(capsys):
    exit_code = cli.main([str(FIXTURES / "insecure.yaml"), "--include", "CFN_S3_003", "--fail-on", "high", "-q"])

    capsys.readouterr()
    assert exit_code == 0


def test_cli_minimum_severity_filters_report(capsys):
    cli.main([str(FIXTURES / "insecure.yaml"), "--output", "json", "--severity", "CRITICAL", "-q"])

    data = json.loads(capsys.readouterr().out)
    assert data["results"]
    assert {result["severity"] for result in data["results"]} == {"CRITICAL"}


def test_cli_sarif_output(capsys):
    cli.main([str(FIXTURES / "insecure.yaml"), "--output", "sarif", "--skip", "CFN_GEN_001,CFN_GEN_002", "-q"])

    sarif = json.loads(capsys.readouterr().out)
    run = sarif["runs"][0]
    assert sarif["version"] == "2.1.0"
    assert run["tool"]["driver"]["name"] == "cfn-security-scanner"
    rule_ids = [entry["id"] for entry in run["tool"]["driver"]["rules"]]
    for result in run["results"]:
        assert rule_ids[result["ruleIndex"]] == result["ruleId"]
        assert result["level"] in {"error", "warning", "note"}
    assert not any(result["ruleId"].startswith("CFN_GEN") for result in run["results"])


def test_cli_scans_directory(tmp_path, capsys):
    (tmp_path / "stack.yaml").write_text((FIXTURES / "secure.yaml").read_text(encoding="utf-8"), encoding="utf-8")

    exit_code = cli.main([str(tmp_path), "--output", "summary", "-q"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "Files scanned: 1" in captured.out


def test_cli_missing_path(tmp_path, capsys):
    exit_code = cli.main([str(tmp_path / "nowhere"), "-q"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert "Path not found" in captured.err


def test_cli_list_rules(capsys):
    exit_code = cli.main(["--list-rules"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "CFN_S3_001" in captured.out
    assert "CFN_GEN_001" in captured.out


def test_cli_list_rules_as_json(capsys):
    exit_code = cli.main(["--list-rules", "--output", "json"])

    rules = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    by_id = {entry["id"]: entry for entry in rules}
    assert by_id["CFN_EC2_001"]["resource_types"] == ["AWS::EC2::SecurityGroup"]
    assert by_id["CFN_EC2_001"]["severity"] == "CRITICAL"
    assert "predicate" not in by_id["CFN_EC2_001"]
