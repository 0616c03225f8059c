"""Utility helpers for the scanner."""

from .fileio import parse_yaml, read_text_file
from .iac import TemplateLoadError, is_cloudformation_template, load_template, parse_template
from .code import iter_template_files

__all__ = [
    "parse_yaml",
    "read_text_file",
    "load_template",
    "parse_template",
    "is_cloudformation_template",
    "TemplateLoadError",
    "iter_template_files",
]
