"""Infrastructure-as-code helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from .fileio import parse_yaml, read_text_file

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json", ".template")
SAM_TRANSFORM = "AWS::Serverless-2016-10-31"


class TemplateLoadError(ValueError):
    """Raised when a template cannot be parsed into a mapping."""


def parse_template(content: str, path: Path) -> Dict[str, Any]:
    """Parse template text, choosing JSON or YAML from the file suffix."""

    try:
        if path.suffix.lower() in JSON_SUFFIXES:
            try:
                data = json.loads(content)
            except json.JSONDecodeError:
                data = parse_yaml(content)
        else:
            data = parse_yaml(content)
    except yaml.YAMLError as exc:
        raise TemplateLoadError(f"Failed to parse template {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise TemplateLoadError(f"Template at {path} is not a mapping")
    return data


def load_template(path: Path) -> Dict[str, Any] | None:
    """Load a SAM/CloudFormation template into a dictionary."""

    if not path.exists():
        return None
    try:
        content = read_text_file(path)
    except (UnicodeDecodeError, OSError) as exc:
        raise TemplateLoadError(f"Failed to read template {path}: {exc}") from exc
    return parse_template(content, path)


def is_cloudformation_template(document: Any) -> bool:
    """Return ``True`` when ``document`` looks like a CloudFormation template."""

    if not isinstance(document, dict):
        return False
    return bool(
        document.get("AWSTemplateFormatVersion")
        or document.get("Resources")
        or document.get("Transform") == SAM_TRANSFORM
    )
