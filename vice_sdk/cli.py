"""Command line helpers for continuity checks."""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
import typer

from vice_detect.engine import DetectionFailedError, MissingFilmIdError, detect_conflicts
from vice_detect.status import film_status
from vice_store import BACKENDS, RecordStore, StoreError, create_store

from .loader import file_sha256, load_seed
from .validators import validate_seed

app = typer.Typer(help="VICE continuity utilities")
seed_app = typer.Typer(help="Seed file commands")
conflicts_app = typer.Typer(help="Recorded conflict commands")
app.add_typer(seed_app, name="seed")
app.add_typer(conflicts_app, name="conflicts")

logger = structlog.get_logger(__name__)


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


@app.callback()
def _configure_logging() -> None:
    # command output goes to stdout; logs stay on stderr
    structlog.configure(
        processors=[structlog.processors.add_log_level, structlog.processors.JSONRenderer()],
        logger_factory=_stderr_logger,
    )


SEED_OPTION = typer.Option(None, "--seed", help="YAML seed loaded into the store first")
DB_OPTION = typer.Option(Path("vice.db"), "--db", help="SQLite database path")
BACKEND_OPTION = typer.Option("sqlite", "--backend", help=f"Store backend: {', '.join(BACKENDS)}")


def _open_store(backend: str, db: Path, seed: Optional[Path]) -> RecordStore:
    try:
        store = create_store(backend, db)
    except ValueError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=2) from exc
    if seed is not None:
        store.load_seed(load_seed(seed))
    return store


@app.command("detect")
def detect(
    film_id: str = typer.Option(..., "--film-id", help="Film to scan"),
    scene: Optional[int] = typer.Option(None, "--scene", help="Restrict the pass to one scene"),
    seed: Optional[Path] = SEED_OPTION,
    db: Path = DB_OPTION,
    backend: str = BACKEND_OPTION,
) -> None:
    """Run a detection pass and print the recorded conflicts as JSON."""

    store = _open_store(backend, db, seed)
    try:
        result = detect_conflicts(store, film_id, scene)
    except MissingFilmIdError as exc:
        typer.echo(json.dumps({"error": str(exc)}))
        raise typer.Exit(code=2) from exc
    except DetectionFailedError as exc:
        typer.echo(json.dumps({"error": "Conflict detection failed", "details": exc.details}))
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(result.to_payload(), indent=2))


@app.command("status")
def status(
    film_id: str = typer.Option(..., "--film-id"),
    db: Path = DB_OPTION,
) -> None:
    """Print the film's continuity status."""

    store = _open_store("sqlite", db, None)
    typer.echo(json.dumps(film_status(store, film_id), indent=2))


@conflicts_app.command("list")
def conflicts_list(
    film_id: str = typer.Option(..., "--film-id"),
    scene: Optional[int] = typer.Option(None, "--scene"),
    include_resolved: bool = typer.Option(False, "--include-resolved"),
    db: Path = DB_OPTION,
) -> None:
    """List recorded conflicts, newest first."""

    store = _open_store("sqlite", db, None)
    try:
        conflicts = store.list_conflicts(film_id, scene, include_resolved=include_resolved)
    except StoreError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc
    for conflict in conflicts:
        marker = "x" if conflict.resolved else " "
        scope = f"scene {conflict.scene_number}"
        if conflict.shot_id:
            scope += f" shot {conflict.shot_id}"
        typer.echo(
            f"[{marker}] {conflict.severity:<7} {conflict.conflict_type:<17} {scope}: "
            f"{conflict.description}"
        )
    typer.echo(f"total: {len(conflicts)}")


@seed_app.command("validate")
def seed_validate(path: Path = typer.Argument(..., help="Path to a YAML seed file")) -> None:
    """Validate a seed file and report the result."""

    try:
        seed = load_seed(path)
    except Exception as exc:  # noqa: BLE001 - surfaced to CLI
        typer.echo("Seed file failed to load:")
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    errors, warnings = validate_seed(seed)
    logger.info(
        "seed.validation.completed",
        path=str(path),
        sha256=file_sha256(path),
        films=len(seed.films),
        errors=len(errors),
        warnings=len(warnings),
    )
    for warning in warnings:
        typer.echo(f"warning: {warning}")
    if errors:
        for message in errors:
            typer.echo(f"error: {message}")
        raise typer.Exit(code=1)
    typer.echo(f"Seed OK ({len(seed.films)} film(s))")


def main() -> None:  # pragma: no cover - entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
