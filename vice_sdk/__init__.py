"""Public SDK surface for continuity tooling."""
from __future__ import annotations

from .loader import file_sha256, load_seed, load_yaml
from .models import (
    CHARACTER_DRIFT,
    STYLE_DRIFT,
    WARDROBE_MISMATCH,
    Conflict,
    ConflictFinding,
    IdentityToken,
    Scope,
    Seed,
    Shot,
    Snapshot,
    StyleContract,
    WardrobeAssignment,
)
from .references import extract_references
from .validators import validate_seed

__all__ = [
    "__version__",
    "CHARACTER_DRIFT",
    "STYLE_DRIFT",
    "WARDROBE_MISMATCH",
    "Conflict",
    "ConflictFinding",
    "IdentityToken",
    "Scope",
    "Seed",
    "Shot",
    "Snapshot",
    "StyleContract",
    "WardrobeAssignment",
    "extract_references",
    "file_sha256",
    "load_seed",
    "load_yaml",
    "validate_seed",
]

__version__ = "0.1.0"
