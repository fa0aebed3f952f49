"""Validators for seed file integrity."""
from __future__ import annotations

from typing import List, Set, Tuple

from .models import FilmSeed, Seed
from .references import extract_references


def _validate_film(film: FilmSeed, errors: List[str], warnings: List[str]) -> None:
    prefix = f"films[{film.film_id}]"

    versions: Set[int] = set()
    for contract in film.style_contracts:
        if contract.version in versions:
            errors.append(f"{prefix} duplicate style contract version: {contract.version}")
        versions.add(contract.version)

    codes: Set[str] = set()
    for token in film.identity_tokens:
        if token.internal_ref_code in codes:
            errors.append(f"{prefix} duplicate identity ref code: {token.internal_ref_code}")
        codes.add(token.internal_ref_code)

    shot_ids: Set[str] = set()
    latest = max(versions) if versions else None
    for shot in film.shots:
        if shot.id in shot_ids:
            errors.append(f"{prefix} duplicate shot id: {shot.id}")
        shot_ids.add(shot.id)
        if shot.scene_number < 0:
            errors.append(f"{prefix} shot {shot.id} has negative scene number")
        version = shot.style_contract_version
        if version is not None and latest is not None and version > latest:
            errors.append(
                f"{prefix} shot {shot.id} bound to style contract v{version}, newest is v{latest}"
            )
        for code in extract_references(shot.prompt_text):
            if code not in codes:
                warnings.append(f"{prefix} shot {shot.id} references unknown token {code}")

    for conflict in film.conflicts:
        if conflict.shot_id is not None and conflict.shot_id not in shot_ids:
            warnings.append(f"{prefix} conflict {conflict.id} points at unknown shot {conflict.shot_id}")


def validate_seed(seed: Seed) -> Tuple[List[str], List[str]]:
    """Return ``(errors, warnings)`` describing seed integrity problems."""

    errors: List[str] = []
    warnings: List[str] = []
    seen: Set[str] = set()
    for film in seed.films:
        if film.film_id in seen:
            errors.append(f"duplicate film id: {film.film_id}")
        seen.add(film.film_id)
        _validate_film(film, errors, warnings)
    return errors, warnings


__all__ = ["validate_seed"]
