import pytest

import app as app_module
from config import CFG
from models import TilingResult, TilingStats
from solver.backends import SolverError, SolverLimitError


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(CFG, "ISOLATE", False)
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_grids_lists_every_geometry(client):
    resp = client.get("/api/grids")
    assert resp.status_code == 200
    grids = {g["name"]: g for g in resp.get_json()["grids"]}
    assert set(grids) == {"square", "hex", "triangle", "polyomino", "polyhex", "polyiamond"}
    assert grids["triangle"]["edges"] == [3, 3]
    assert grids["hex"]["transforms"] == 12


def test_solve_monomino(client):
    resp = client.post("/api/solve", json={"grid": "square", "tiles": [[1]], "width": 2, "height": 2})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert len(body["placements"]) == 4
    assert body["tile_type_counts"] == [4]
    assert body["overlaps"] == []
    assert body["edge_violations"] == []
    assert body["maze"] is None
    assert body["stats"]["num_placements"] == 32

    latest = client.get("/api/result/latest").get_json()
    assert latest["ok"] is True
    assert latest["width"] == 2


def test_solve_with_maze(client):
    resp = client.post("/api/solve", json={
        "grid": "square", "tiles": [[1]], "width": 2, "height": 2, "maze": True, "seed": 3,
    })
    body = resp.get_json()
    assert body["maze"]["components"] == 1
    assert len(body["maze"]["openings"]) == 3
    assert len(body["maze"]["walls"]) == 9


def test_solve_with_edge_marks(client):
    resp = client.post("/api/solve", json={
        "grid": "triangle",
        "tiles": [[1]],
        "edge_states": [[[1, 0, 0]]],
        "width": 2,
        "height": 2,
    })
    body = resp.get_json()
    assert body["ok"] is True
    assert body["edge_violations"] == []


def test_bad_request_is_unprocessable(client):
    resp = client.post("/api/solve", json={"tiles": [[1]], "width": 0, "height": 2})
    assert resp.status_code == 422
    assert "Bad region" in resp.get_json()["error"]

    resp = client.post("/api/solve", json={"grid": "octagon", "tiles": [[1]], "width": 1, "height": 1})
    assert resp.status_code == 422

    snap = client.get("/api/progress").get_json()
    assert snap["done"] is True
    assert snap["ok"] is False


def test_solver_limit_is_service_unavailable(client, monkeypatch):
    def _raise(*args, **kwargs):
        raise SolverLimitError("Stopped before solution (time or memory limit)")

    monkeypatch.setattr(app_module, "solve_tiling", _raise)
    resp = client.post("/api/solve", json={"tiles": [[1]], "width": 2, "height": 2})
    assert resp.status_code == 503
    assert "time or memory" in resp.get_json()["error"]


def test_invalid_model_is_unprocessable(client, monkeypatch):
    def _raise(*args, **kwargs):
        raise SolverError("Model invalid (configuration error)")

    monkeypatch.setattr(app_module, "solve_tiling", _raise)
    resp = client.post("/api/solve", json={"tiles": [[1]], "width": 2, "height": 2})
    assert resp.status_code == 422


def test_invalid_model_from_isolated_solve_is_unprocessable(client, monkeypatch):
    def _raise(*args, **kwargs):
        raise SolverError("Model invalid (configuration error)")

    monkeypatch.setattr(CFG, "ISOLATE", True)
    monkeypatch.setattr(app_module, "run_tiling_isolated", _raise)
    resp = client.post("/api/solve", json={"tiles": [[1]], "width": 2, "height": 2})
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "Model invalid (configuration error)"


def test_unsatisfiable_is_reported(client, monkeypatch):
    monkeypatch.setattr(
        app_module, "solve_tiling",
        lambda *args, **kwargs: TilingResult(False, stats=TilingStats(), tile_type_counts=[0]),
    )
    resp = client.post("/api/solve", json={"tiles": [[1]], "width": 2, "height": 2})
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is False
    snap = client.get("/api/progress").get_json()
    assert snap["status"] == "Unsatisfiable"


def test_progress_is_not_cached(client):
    resp = client.get("/api/progress")
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    assert "status" in resp.get_json()
