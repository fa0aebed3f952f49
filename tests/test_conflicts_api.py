from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FILM, OTHER_FILM, make_seed
from vice_api.auth import AllowAllVerifier, get_verifier
from vice_api.main import app
from vice_api.store import get_store
from vice_store import InMemoryRecordStore

client = TestClient(app)


@pytest.fixture(autouse=True)
def store():
    seeded = InMemoryRecordStore.from_seed(make_seed())
    app.dependency_overrides[get_store] = lambda: seeded
    app.dependency_overrides[get_verifier] = lambda: AllowAllVerifier()
    yield seeded
    app.dependency_overrides.clear()


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_requires_film_id() -> None:
    response = client.get("/vice/conflicts")
    assert response.status_code == 400
    assert response.json() == {"error": "film_id is required"}


def test_list_after_detection(store) -> None:
    client.post("/detect-continuity-conflicts", json={"film_id": FILM})
    response = client.get("/vice/conflicts", params={"film_id": FILM})
    assert response.status_code == 200
    conflicts = response.json()["conflicts"]
    assert len(conflicts) == 3

    store.resolve_conflict(conflicts[0]["id"])
    unresolved = client.get("/vice/conflicts", params={"film_id": FILM}).json()["conflicts"]
    everything = client.get(
        "/vice/conflicts", params={"film_id": FILM, "include_resolved": True}
    ).json()["conflicts"]
    assert len(unresolved) == 2
    assert len(everything) == 3


def test_list_filters_by_scene() -> None:
    client.post("/detect-continuity-conflicts", json={"film_id": FILM})
    response = client.get("/vice/conflicts", params={"film_id": FILM, "scene_number": 4})
    assert response.json()["conflicts"] == []


def test_status_reports_conflict_when_errors_open() -> None:
    client.post("/detect-continuity-conflicts", json={"film_id": FILM})
    data = client.get("/vice/status", params={"film_id": FILM}).json()
    assert data["status"] == "conflict"
    assert data["errors"] == 1
    assert data["warnings"] == 2
    assert data["dirty_tokens"] == 1


def test_status_updating_for_warnings_only() -> None:
    data = client.get("/vice/status", params={"film_id": OTHER_FILM}).json()
    assert data["status"] == "updating"
    assert data["unresolved"] == 1
