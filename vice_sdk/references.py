"""Symbolic asset reference extraction."""
from __future__ import annotations

import re
from typing import List, Optional

REFERENCE_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


def extract_references(text: Optional[str]) -> List[str]:
    """Return the ``{{CODE}}`` reference codes in ``text`` in order of appearance.

    Duplicates are kept; callers decide whether to collapse them.
    """

    if not text:
        return []
    return REFERENCE_PATTERN.findall(text)


__all__ = ["REFERENCE_PATTERN", "extract_references"]
