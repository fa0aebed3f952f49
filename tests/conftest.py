from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from vice_sdk.models import (  # noqa: E402
    Conflict,
    FilmSeed,
    IdentityToken,
    Seed,
    Shot,
    StyleContract,
    WardrobeAssignment,
)
from vice_store import InMemoryRecordStore, RecordStore, SqliteRecordStore  # noqa: E402

FIXTURES = REPO_ROOT / "tests" / "fixtures"
FILM = "film-1"
OTHER_FILM = "film-2"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def make_seed() -> Seed:
    """Scene 3 carries one conflict of every kind; scene 4 is clean."""

    film = FilmSeed(
        film_id=FILM,
        shots=[
            Shot(
                id="shot-3a",
                film_id=FILM,
                scene_number=3,
                created_at=at(1),
                prompt_text="Wide on {{CHAR_A}} entering the station.",
                style_contract_version=2,
            ),
            Shot(
                id="shot-4a",
                film_id=FILM,
                scene_number=4,
                created_at=at(2),
                prompt_text="{{CHAR_B}} waits by the window.",
                style_contract_version=3,
            ),
            Shot(id="shot-4b", film_id=FILM, scene_number=4, created_at=at(3)),
        ],
        style_contracts=[
            StyleContract(film_id=FILM, version=1),
            StyleContract(film_id=FILM, version=3),
            StyleContract(film_id=FILM, version=2),
        ],
        identity_tokens=[
            IdentityToken(
                film_id=FILM,
                asset_type="actor",
                internal_ref_code="CHAR_A",
                display_name="Lara",
                is_dirty=True,
            ),
            IdentityToken(
                film_id=FILM,
                asset_type="actor",
                internal_ref_code="CHAR_B",
                display_name="Maya",
                is_dirty=False,
            ),
        ],
        wardrobe=[
            WardrobeAssignment(
                film_id=FILM, scene_number=3, character_name="LARA",
                clothing_item="red coat", created_at=at(1),
            ),
            WardrobeAssignment(
                film_id=FILM, scene_number=3, character_name="LARA",
                clothing_item="blue coat", created_at=at(2),
            ),
            WardrobeAssignment(
                film_id=FILM, scene_number=4, character_name="MAYA",
                clothing_item="grey scarf", created_at=at(3),
            ),
        ],
    )
    other = FilmSeed(
        film_id=OTHER_FILM,
        shots=[Shot(id="shot-x", film_id=OTHER_FILM, scene_number=3, style_contract_version=1)],
        style_contracts=[StyleContract(film_id=OTHER_FILM, version=2)],
        conflicts=[
            Conflict(
                film_id=OTHER_FILM,
                scene_number=3,
                shot_id="shot-x",
                conflict_type="style_drift",
                description="Shot generated with style contract v1, current is v2.",
                severity="warning",
            )
        ],
    )
    return Seed(films=[film, other])


@pytest.fixture
def seed() -> Seed:
    return make_seed()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path, seed: Seed) -> Iterator[RecordStore]:
    """A seeded record store, once per backend."""

    if request.param == "memory":
        backend: RecordStore = InMemoryRecordStore()
    else:
        backend = SqliteRecordStore(tmp_path / "vice.db")
    backend.load_seed(seed)
    yield backend
