from __future__ import annotations

import sqlite3
import threading

import pytest

from conftest import FILM, OTHER_FILM
from vice_sdk.models import ConflictFinding
from vice_store import (
    ConflictNotFoundError,
    InMemoryRecordStore,
    SqliteRecordStore,
    StoreError,
    create_store,
)


def _finding(scene: int, description: str, shot_id=None) -> ConflictFinding:
    return ConflictFinding(
        scene_number=scene,
        shot_id=shot_id,
        conflict_type="style_drift",
        description=description,
        severity="warning",
    )


def test_reader_orders_shots_by_scene_then_creation(store) -> None:
    with store.read_snapshot_view() as reader:
        shots = reader.shots(FILM)
        scene_four = reader.shots(FILM, 4)
    assert [shot.id for shot in shots] == ["shot-3a", "shot-4a", "shot-4b"]
    assert [shot.id for shot in scene_four] == ["shot-4a", "shot-4b"]


def test_reader_picks_highest_contract_version(store) -> None:
    with store.read_snapshot_view() as reader:
        contract = reader.latest_style_contract(FILM)
        missing = reader.latest_style_contract("no-such-film")
    assert contract is not None and contract.version == 3
    assert missing is None


def test_reader_returns_only_dirty_tokens(store) -> None:
    with store.read_snapshot_view() as reader:
        tokens = reader.dirty_identity_tokens(FILM)
    assert [token.internal_ref_code for token in tokens] == ["CHAR_A"]
    assert tokens[0].asset_type == "actor"


def test_reader_scopes_wardrobe_to_scene(store) -> None:
    with store.read_snapshot_view() as reader:
        everything = reader.wardrobe_assignments(FILM)
        scene_three = reader.wardrobe_assignments(FILM, 3)
    assert len(everything) == 3
    assert [item.clothing_item for item in scene_three] == ["red coat", "blue coat"]


def test_replace_counts_deleted_rows(store) -> None:
    first = store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "a"), _finding(3, "b")])
    assert first.deleted == 0
    assert len(first.inserted) == 2

    second = store.replace_unresolved_conflicts(FILM, 3, [])
    assert second.deleted == 2
    assert second.inserted == []
    assert store.list_conflicts(FILM, 3) == []


def test_replace_without_scene_covers_whole_film_only(store) -> None:
    store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "a")])
    store.replace_unresolved_conflicts(FILM, 4, [_finding(4, "b")])

    outcome = store.replace_unresolved_conflicts(FILM, None, [])

    assert outcome.deleted == 2
    assert len(store.list_conflicts(OTHER_FILM)) == 1


def test_replace_skips_findings_already_resolved(store) -> None:
    inserted = store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "a", "shot-3a")]).inserted
    store.resolve_conflict(inserted[0].id)

    outcome = store.replace_unresolved_conflicts(
        FILM, 3, [_finding(3, "a", "shot-3a"), _finding(3, "b", "shot-3a")]
    )

    assert outcome.suppressed == 1
    assert [conflict.description for conflict in outcome.inserted] == ["b"]


def test_list_conflicts_hides_resolved_by_default(store) -> None:
    inserted = store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "a")]).inserted
    store.resolve_conflict(inserted[0].id)
    assert store.list_conflicts(FILM) == []
    assert len(store.list_conflicts(FILM, include_resolved=True)) == 1


def test_resolve_unknown_conflict(store) -> None:
    with pytest.raises(ConflictNotFoundError):
        store.resolve_conflict("missing")


def test_sqlite_rolls_back_delete_when_insert_fails(tmp_path, seed, monkeypatch) -> None:
    store = SqliteRecordStore(tmp_path / "vice.db")
    store.load_seed(seed)
    store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "old")])

    def _fail(conn, conflicts):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(SqliteRecordStore, "_insert_conflicts", staticmethod(_fail))

    with pytest.raises(StoreError) as excinfo:
        store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "new")])

    assert "disk I/O error" in str(excinfo.value)
    assert str(tmp_path) not in str(excinfo.value)
    monkeypatch.undo()
    assert [c.description for c in store.list_conflicts(FILM, 3)] == ["old"]


def test_sqlite_persists_across_instances(tmp_path, seed) -> None:
    path = tmp_path / "vice.db"
    SqliteRecordStore(path).load_seed(seed)
    reopened = SqliteRecordStore(path)
    with reopened.read_snapshot_view() as reader:
        assert len(reader.shots(FILM)) == 3
    assert len(reopened.list_conflicts(OTHER_FILM)) == 1


def test_memory_reader_blocks_concurrent_replacement(seed) -> None:
    store = InMemoryRecordStore.from_seed(seed)
    finished = threading.Event()

    def _writer() -> None:
        store.replace_unresolved_conflicts(FILM, 3, [_finding(3, "from writer")])
        finished.set()

    with store.read_snapshot_view():
        thread = threading.Thread(target=_writer)
        thread.start()
        assert not finished.wait(0.1)
    thread.join(timeout=5)
    assert finished.is_set()
    assert [c.description for c in store.list_conflicts(FILM, 3)] == ["from writer"]


def test_create_store_rejects_unknown_backend() -> None:
    with pytest.raises(ValueError):
        create_store("postgres")
    assert isinstance(create_store("memory"), InMemoryRecordStore)
