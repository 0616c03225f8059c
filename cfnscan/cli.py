"""Command-line entry point for the CloudFormation security scanner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from .catalog import load_all_rules
from .formatters import FORMATTERS, get_formatter
from .scanner import ScanOptions, Scanner
from .severity import Severity

SEVERITY_CHOICES = [severity.value for severity in sorted(Severity, key=lambda item: item.rank)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cfn-scan",
        description="Security scanner for AWS CloudFormation templates",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="File or directory to scan.",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=sorted(FORMATTERS),
        default="console",
        help="Report format (defaults to console).",
    )
    parser.add_argument(
        "-s",
        "--severity",
        type=str.upper,
        choices=SEVERITY_CHOICES,
        default=Severity.INFO.value,
        help="Minimum severity to report.",
    )
    parser.add_argument(
        "-f",
        "--fail-on",
        type=str.upper,
        choices=SEVERITY_CHOICES,
        default=Severity.HIGH.value,
        help="Exit non-zero when failed checks at this severity or higher are present.",
    )
    parser.add_argument("--skip", default="", help="Comma-separated rule ids to skip.")
    parser.add_argument(
        "--include",
        default="",
        help="Comma-separated rule ids to run (all others are excluded).",
    )
    parser.add_argument(
        "--framework",
        default="all",
        help="Only run rules tagged with this compliance framework (CIS, SOC2, HIPAA, PCI-DSS).",
    )
    parser.add_argument("--list-rules", action="store_true", help="List available rules and exit.")
    parser.add_argument(
        "--output-file",
        dest="output_path",
        default=None,
        help="Write the report to this path instead of stdout.",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable).",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def split_ids(raw: str) -> tuple:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def list_rules(output_format: str = "console") -> str:
    descriptors = load_all_rules()
    if output_format == "json":
        return json.dumps([descriptor.to_dict() for descriptor in descriptors], indent=2)

    lines: List[str] = []
    for descriptor in descriptors:
        types = ", ".join(sorted(descriptor.resource_types)) or "*"
        lines.append(f"{descriptor.id:<16} {descriptor.severity.value:<9} {descriptor.category:<16} {descriptor.name} [{types}]")
    return "\n".join(lines)


def write_output(payload: str, output_path: str | None, quiet: bool) -> None:
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload, encoding="utf-8")
        if not quiet:
            print(f"Report written to {output_path}")
    else:
        print(payload)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.list_rules:
        print(list_rules(args.output))
        return 0

    options = ScanOptions(
        fail_on=Severity(args.fail_on),
        skip_rules=split_ids(args.skip),
        include_rules=split_ids(args.include),
        framework=args.framework,
    )
    scanner = Scanner(options).initialize()

    if not args.quiet:
        print(f"Scanning: {Path(args.path).resolve()}", file=sys.stderr)
    try:
        file_results = scanner.scan_path(args.path)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    minimum = Severity(args.severity)
    reported = [finding for finding in scanner.findings if finding.severity.at_least(minimum)]
    formatter = get_formatter(args.output)
    write_output(formatter(reported, scanner.summary(), file_results), args.output_path, args.quiet)

    return 1 if scanner.should_fail() else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
