"""Template discovery helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

DEFAULT_PATTERNS = ("*.yaml", "*.yml", "*.json", "*.template")


def iter_template_files(root: Path, patterns: Iterable[str] = DEFAULT_PATTERNS) -> List[Path]:
    """Return candidate template files beneath ``root`` in a stable order."""

    found = set()
    for pattern in patterns:
        for path in Path(root).rglob(pattern):
            if path.is_file():
                found.add(path)
    return sorted(found)
