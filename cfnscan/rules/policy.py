"""Helpers shared by rules that inspect IAM-style policy documents."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple


def ensure_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


def allow_statements(document: Any) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield ``(index, statement)`` for every ``Allow`` statement in ``document``."""

    if not isinstance(document, dict):
        return
    statements = document.get("Statement")
    if isinstance(statements, dict):
        statements = [statements]
    if not isinstance(statements, list):
        return
    for idx, statement in enumerate(statements):
        if isinstance(statement, dict) and str(statement.get("Effect", "")).upper() == "ALLOW":
            yield idx, statement


def public_principal(statement: Dict[str, Any]) -> Optional[str]:
    """Return ``"public"`` or ``"all-aws"`` when the statement grants access to anyone.

    Statements carrying a ``Condition`` are treated as restricted.
    """

    if statement.get("Condition"):
        return None
    principal = statement.get("Principal")
    if principal == "*":
        return "public"
    if isinstance(principal, dict) and "*" in ensure_list(principal.get("AWS")):
        return "all-aws"
    return None


def find_public_statement(document: Any) -> Optional[Tuple[int, str]]:
    for idx, statement in allow_statements(document):
        kind = public_principal(statement)
        if kind:
            return idx, kind
    return None
