"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# Short-form tags that keep their name in long form instead of gaining ``Fn::``.
_UNPREFIXED_TAGS = {"Ref", "Condition"}


class CloudFormationLoader(yaml.SafeLoader):
    """YAML loader that expands CloudFormation short-form intrinsic tags."""


def _construct_intrinsic(loader: CloudFormationLoader, tag_suffix: str, node: yaml.Node) -> Any:
    key = tag_suffix if tag_suffix in _UNPREFIXED_TAGS else f"Fn::{tag_suffix}"
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
        if tag_suffix == "GetAtt" and "." in value:
            value = value.split(".", 1)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    elif isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    else:  # pragma: no cover - PyYAML only produces the three node kinds
        value = None
    return {key: value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_yaml(content: str) -> Any:
    return yaml.load(content, Loader=CloudFormationLoader)


def read_text_file(path: Path) -> str:
    """Return the file contents as UTF-8 text, or an empty string if missing."""

    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")
