"""Helpers for loading production records from YAML seed files."""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict

import yaml

from .models import Seed


def load_yaml(path: Path | str) -> Dict[str, Any]:
    """Load a YAML file as a dictionary."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {p}, got {type(data)!r}")
    return data


def load_seed(path: Path | str) -> Seed:
    """Load film records from a seed file."""

    raw = load_yaml(path)
    return Seed(**raw)


def file_sha256(path: Path | str) -> str:
    """Compute a SHA-256 digest for the supplied file path."""

    data = Path(path).read_bytes()
    return hashlib.sha256(data).hexdigest()
