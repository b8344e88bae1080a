# app.py - JSON host for the tiling engine; progress no-cache
from __future__ import annotations
import random
import time
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request, jsonify

from config import CFG
from models import MazeResult, Placement, TilingResult, Wall
from solver.backends import CpSatBackend, SolverError, SolverLimitError
from solver.encoder import solve_tiling
from solver.geometry import GEOMETRIES
from solver.maze import carve_maze
from solver.projection import check_edge_adjacency_consistency, find_placement_overlaps
from solver.cp_isolate import run_tiling_isolated
from tiles import TilingRequest, parse_tiling_request

from progress import (
    reset as progress_reset,
    snapshot as progress_json,
    start_timer as progress_start,
    set_status, set_phase, set_grid, set_done, set_model_stats,
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "message": "",
    "grid": "",
    "width": 0,
    "height": 0,
    "placements": [],
    "tile_type_counts": [],
    "elapsed_str": "0s",
}

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/api/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _wall_json(wall: Wall) -> Dict[str, Any]:
    return {"cell": list(wall.cell), "edge": wall.edge_index}


def _placement_json(p: Placement) -> Dict[str, Any]:
    return {
        "id": p.id,
        "tile": p.tile_type_index,
        "transform": p.transform_index,
        "cells": [list(c) for c in p.cells],
    }


def _maze_json(maze: Optional[MazeResult]) -> Optional[Dict[str, Any]]:
    if maze is None:
        return None
    return {
        "walls": [_wall_json(w) for w in maze.remaining_walls],
        "openings": [
            {"a": a, "b": b, "wall": _wall_json(w)}
            for a, b, w in maze.spanning_tree_edges
        ],
        "components": maze.num_components,
    }


def _result_json(req: TilingRequest, tiling: TilingResult, maze: Optional[MazeResult]) -> Dict[str, Any]:
    overlaps = find_placement_overlaps(tiling.placements)
    edge_violations = check_edge_adjacency_consistency(req.geometry, tiling.placements, req.edge_states)
    return {
        "ok": tiling.satisfiable,
        "grid": req.geometry.name,
        "width": req.width,
        "height": req.height,
        "placements": [_placement_json(p) for p in tiling.placements],
        "tile_type_counts": list(tiling.tile_type_counts),
        "stats": tiling.stats.as_dict(),
        "overlaps": [
            {"cell": list(o.cell), "a": o.placement_a, "b": o.placement_b}
            for o in overlaps
        ],
        "edge_violations": [
            {
                "cell1": list(v.cell1), "edge1": v.edge_index1, "value1": v.value1,
                "cell2": list(v.cell2), "edge2": v.edge_index2, "value2": v.value2,
            }
            for v in edge_violations
        ],
        "maze": _maze_json(maze),
    }


def _solve_in_process(req: TilingRequest) -> Tuple[TilingResult, Optional[MazeResult]]:
    set_phase("solve")
    tiling = solve_tiling(
        req.geometry, req.tiles, req.width, req.height, CpSatBackend(),
        on_stats=set_model_stats, edge_states=req.edge_states,
    )
    maze = None
    if req.maze and tiling.satisfiable:
        set_phase("maze")
        rng = random.Random(req.seed) if req.seed is not None else None
        maze = carve_maze(req.geometry, tiling.placements, rng)
    return tiling, maze


def _fail(reason: str, code: int, t0: float):
    set_done(False, reason=reason)
    LAST_RESULT.update({
        "ok": False,
        "message": reason,
        "placements": [],
        "tile_type_counts": [],
        "elapsed_str": _fmt_elapsed(time.time() - t0),
    })
    return jsonify({"ok": False, "error": reason}), code


@app.route("/api/grids")
def grids():
    return jsonify({
        "grids": [
            {
                "name": name,
                "geometry": g.name,
                "cell_types": g.num_cell_types,
                "rotations": g.num_rotations,
                "transforms": g.num_transforms,
                "edges": [len(n) for n in g.neighbors],
            }
            for name, g in GEOMETRIES.items()
        ]
    })


@app.route("/api/solve", methods=["POST"])
def solve():
    progress_reset()
    t0 = time.time()

    payload = request.get_json(silent=True)
    req, err = parse_tiling_request(payload)
    if err or req is None:
        return _fail(err or "nothing parsed from request", 422, t0)

    set_grid(req.geometry.name, req.width, req.height)
    progress_start()

    try:
        if CFG.ISOLATE:
            _ok, out, reason, crash_note = run_tiling_isolated(
                req.geometry.name, req.tiles, req.width, req.height,
                edge_states=req.edge_states, max_seconds=CFG.MAX_SECONDS,
                maze=req.maze, seed=req.seed,
            )
            if out is None:
                reason = reason or "Stopped before solution"
                if crash_note:
                    reason = f"{reason} ({crash_note})"
                return _fail(reason, 503, t0)
            tiling, maze = out["tiling"], out["maze"]
        else:
            tiling, maze = _solve_in_process(req)
    except SolverLimitError as e:
        return _fail(str(e), 503, t0)
    except MemoryError:
        return _fail("Ran out of memory while solving", 503, t0)
    except SolverError as e:
        return _fail(str(e), 422, t0)

    body = _result_json(req, tiling, maze)
    if tiling.satisfiable:
        set_done(True, reason=f"{len(tiling.placements)} placements")
    else:
        set_done(status="Unsatisfiable", reason="No tiling exists for this region")
    body["elapsed_str"] = _fmt_elapsed(time.time() - t0)

    LAST_RESULT.update({
        "ok": body["ok"],
        "message": "" if body["ok"] else "No tiling exists for this region",
        "grid": body["grid"],
        "width": body["width"],
        "height": body["height"],
        "placements": body["placements"],
        "tile_type_counts": body["tile_type_counts"],
        "elapsed_str": body["elapsed_str"],
    })
    return jsonify(body)


@app.route("/api/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


@app.route("/api/progress")
def progress_view():
    return jsonify(progress_json())


if __name__ == "__main__":
    set_status("Idle")
    app.run(debug=False)
