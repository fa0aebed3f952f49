"""SQLite-backed record store.

Conflict replacement runs inside one ``BEGIN IMMEDIATE`` transaction, so a
concurrent reader sees either the previous unresolved set or the new one.
Read views hold a deferred transaction open for the whole detection pass.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

import structlog

from vice_sdk.models import (
    Conflict,
    ConflictFinding,
    IdentityToken,
    Seed,
    Shot,
    StyleContract,
    WardrobeAssignment,
    utcnow,
)

from .base import (
    ConflictNotFoundError,
    Replacement,
    StoreError,
    conflicts_from_findings,
    suppress_resolved,
)

logger = structlog.get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS shots (
    id TEXT PRIMARY KEY,
    film_id TEXT NOT NULL,
    scene_number INTEGER NOT NULL,
    prompt_text TEXT,
    style_contract_version INTEGER,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS film_style_contracts (
    id TEXT PRIMARY KEY,
    film_id TEXT NOT NULL,
    version INTEGER NOT NULL,
    visual_dna TEXT,
    UNIQUE (film_id, version)
);

CREATE TABLE IF NOT EXISTS asset_identity_registry (
    id TEXT PRIMARY KEY,
    film_id TEXT NOT NULL,
    asset_type TEXT NOT NULL CHECK (asset_type IN ('actor', 'prop', 'location')),
    internal_ref_code TEXT NOT NULL,
    display_name TEXT NOT NULL,
    is_dirty INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS wardrobe_scene_assignments (
    id TEXT PRIMARY KEY,
    film_id TEXT NOT NULL,
    character_name TEXT NOT NULL,
    clothing_item TEXT NOT NULL,
    scene_number INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (film_id, character_name, clothing_item, scene_number)
);

CREATE TABLE IF NOT EXISTS vice_conflicts (
    id TEXT PRIMARY KEY,
    film_id TEXT NOT NULL,
    scene_number INTEGER NOT NULL,
    shot_id TEXT,
    conflict_type TEXT NOT NULL,
    description TEXT NOT NULL,
    severity TEXT NOT NULL DEFAULT 'warning',
    resolved INTEGER NOT NULL DEFAULT 0,
    resolved_at TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_shots_film ON shots(film_id, scene_number);
CREATE INDEX IF NOT EXISTS idx_contracts_film ON film_style_contracts(film_id, version);
CREATE INDEX IF NOT EXISTS idx_registry_film ON asset_identity_registry(film_id, is_dirty);
CREATE UNIQUE INDEX IF NOT EXISTS idx_registry_ref
    ON asset_identity_registry(film_id, internal_ref_code);
CREATE INDEX IF NOT EXISTS idx_wardrobe_film ON wardrobe_scene_assignments(film_id, scene_number);
CREATE INDEX IF NOT EXISTS idx_vice_conflicts_film ON vice_conflicts(film_id, resolved);
"""


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _scene_clause(scene_number: Optional[int], params: List[Any]) -> str:
    if scene_number is None:
        return ""
    params.append(scene_number)
    return " AND scene_number = ?"


def _conflict_from_row(row: sqlite3.Row) -> Conflict:
    data = dict(row)
    data["resolved"] = bool(data["resolved"])
    return Conflict(**data)


class _SqliteReader:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def shots(self, film_id: str, scene_number: Optional[int] = None) -> List[Shot]:
        params: List[Any] = [film_id]
        clause = _scene_clause(scene_number, params)
        rows = self._conn.execute(
            "SELECT * FROM shots WHERE film_id = ?" + clause
            + " ORDER BY scene_number, created_at, rowid",
            params,
        ).fetchall()
        return [Shot(**dict(row)) for row in rows]

    def latest_style_contract(self, film_id: str) -> Optional[StyleContract]:
        row = self._conn.execute(
            "SELECT id, film_id, version, visual_dna FROM film_style_contracts"
            " WHERE film_id = ? ORDER BY version DESC LIMIT 1",
            (film_id,),
        ).fetchone()
        return StyleContract(**dict(row)) if row is not None else None

    def dirty_identity_tokens(self, film_id: str) -> List[IdentityToken]:
        rows = self._conn.execute(
            "SELECT * FROM asset_identity_registry WHERE film_id = ? AND is_dirty = 1 ORDER BY rowid",
            (film_id,),
        ).fetchall()
        return [IdentityToken(**{**dict(row), "is_dirty": True}) for row in rows]

    def wardrobe_assignments(
        self, film_id: str, scene_number: Optional[int] = None
    ) -> List[WardrobeAssignment]:
        params: List[Any] = [film_id]
        clause = _scene_clause(scene_number, params)
        rows = self._conn.execute(
            "SELECT * FROM wardrobe_scene_assignments WHERE film_id = ?" + clause
            + " ORDER BY scene_number, created_at, rowid",
            params,
        ).fetchall()
        return [WardrobeAssignment(**dict(row)) for row in rows]


class SqliteRecordStore:
    """Record store persisted to a single SQLite database file."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_conn() as conn:
            try:
                conn.executescript(SCHEMA)
            except sqlite3.Error as exc:
                raise StoreError(f"schema setup failed: {exc}") from exc
        logger.info("vice.store.opened", backend="sqlite")

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path, isolation_level=None)
        except sqlite3.Error as exc:
            raise StoreError(f"store connection failed: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, mode: str = "DEFERRED") -> Iterator[sqlite3.Connection]:
        with self._get_conn() as conn:
            try:
                conn.execute(f"BEGIN {mode}")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise StoreError(f"store transaction failed: {exc}") from exc
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    @contextmanager
    def read_snapshot_view(self) -> Iterator[_SqliteReader]:
        with self._transaction("DEFERRED") as conn:
            yield _SqliteReader(conn)

    def load_seed(self, seed: Seed) -> None:
        """Upsert seed records keyed by id, contract version, ref code or wardrobe slot."""

        with self._transaction("IMMEDIATE") as conn:
            for film in seed.films:
                conn.executemany(
                    "INSERT OR REPLACE INTO shots"
                    " (id, film_id, scene_number, prompt_text, style_contract_version, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    [
                        (s.id, s.film_id, s.scene_number, s.prompt_text,
                         s.style_contract_version, _ts(s.created_at))
                        for s in film.shots
                    ],
                )
                conn.executemany(
                    "INSERT OR REPLACE INTO film_style_contracts (id, film_id, version, visual_dna)"
                    " VALUES (?, ?, ?, ?)",
                    [(c.id, c.film_id, c.version, c.visual_dna) for c in film.style_contracts],
                )
                conn.executemany(
                    "INSERT INTO asset_identity_registry"
                    " (id, film_id, asset_type, internal_ref_code, display_name, is_dirty)"
                    " VALUES (?, ?, ?, ?, ?, ?)"
                    " ON CONFLICT (film_id, internal_ref_code) DO UPDATE SET"
                    " asset_type = excluded.asset_type,"
                    " display_name = excluded.display_name,"
                    " is_dirty = excluded.is_dirty",
                    [
                        (t.id, t.film_id, t.asset_type, t.internal_ref_code,
                         t.display_name, int(t.is_dirty))
                        for t in film.identity_tokens
                    ],
                )
                conn.executemany(
                    "INSERT OR REPLACE INTO wardrobe_scene_assignments"
                    " (id, film_id, character_name, clothing_item, scene_number, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    [
                        (w.id, w.film_id, w.character_name, w.clothing_item,
                         w.scene_number, _ts(w.created_at))
                        for w in film.wardrobe
                    ],
                )
                self._insert_conflicts(conn, film.conflicts, keep_existing=True)
        logger.info("vice.store.seeded", backend="sqlite", films=len(seed.films))

    @staticmethod
    def _insert_conflicts(
        conn: sqlite3.Connection, conflicts: Sequence[Conflict], keep_existing: bool = False
    ) -> None:
        verb = "INSERT OR IGNORE" if keep_existing else "INSERT"
        conn.executemany(
            verb + " INTO vice_conflicts"
            " (id, film_id, scene_number, shot_id, conflict_type, description,"
            " severity, resolved, resolved_at, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (c.id, c.film_id, c.scene_number, c.shot_id, c.conflict_type,
                 c.description, c.severity, int(c.resolved), _ts(c.resolved_at),
                 _ts(c.created_at))
                for c in conflicts
            ],
        )

    def replace_unresolved_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int],
        findings: Sequence[ConflictFinding],
    ) -> Replacement:
        params: List[Any] = [film_id]
        clause = _scene_clause(scene_number, params)
        with self._transaction("IMMEDIATE") as conn:
            resolved = [
                _conflict_from_row(row)
                for row in conn.execute(
                    "SELECT * FROM vice_conflicts WHERE film_id = ? AND resolved = 1" + clause,
                    params,
                ).fetchall()
            ]
            fresh = suppress_resolved(findings, resolved)
            inserted = conflicts_from_findings(film_id, fresh)
            cursor = conn.execute(
                "DELETE FROM vice_conflicts WHERE film_id = ? AND resolved = 0" + clause,
                params,
            )
            deleted = cursor.rowcount
            if inserted:
                self._insert_conflicts(conn, inserted)
        return Replacement(
            deleted=deleted, inserted=inserted, suppressed=len(findings) - len(fresh)
        )

    def list_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int] = None,
        include_resolved: bool = False,
    ) -> List[Conflict]:
        params: List[Any] = [film_id]
        clause = _scene_clause(scene_number, params)
        if not include_resolved:
            clause += " AND resolved = 0"
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM vice_conflicts WHERE film_id = ?" + clause
                + " ORDER BY created_at DESC, rowid DESC",
                params,
            ).fetchall()
        return [_conflict_from_row(row) for row in rows]

    def resolve_conflict(self, conflict_id: str) -> Conflict:
        with self._transaction("IMMEDIATE") as conn:
            cursor = conn.execute(
                "UPDATE vice_conflicts SET resolved = 1, resolved_at = ? WHERE id = ?",
                (_ts(utcnow()), conflict_id),
            )
            if cursor.rowcount == 0:
                raise ConflictNotFoundError(f"conflict '{conflict_id}' not found")
            row = conn.execute("SELECT * FROM vice_conflicts WHERE id = ?", (conflict_id,)).fetchone()
        return _conflict_from_row(row)


__all__ = ["SCHEMA", "SqliteRecordStore"]
