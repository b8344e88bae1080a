# tiles.py - tolerant parsing of tile drawings, edge marks and solve requests
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from config import CFG
from models import Coord, EdgeState
from solver.geometry import GridGeometry, get_geometry
from solver.transforms import normalization_offset

CellGrid = Sequence[Sequence[Any]]


@dataclass
class TilingRequest:
    geometry: GridGeometry
    tiles: List[List[Coord]]
    width: int
    height: int
    edge_states: Optional[List[Optional[EdgeState]]] = None
    maze: bool = False
    seed: Optional[int] = None


def _to_int(x: Any) -> Optional[int]:
    if isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    if not f.is_integer():
        return None
    return int(f)


def _truthy(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "on", "x", "#")
    return bool(x)


def _as_listish(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, (list, tuple)):
        return list(val)
    return [val]


def _filled_cells(cells: CellGrid) -> List[Coord]:
    # cells[r][q]: rows are r, columns are q
    out: List[Coord] = []
    for r, row in enumerate(cells or []):
        for q, value in enumerate(_as_listish(row)):
            if _truthy(value):
                out.append((q, r))
    return out


def grid_to_coords(geometry: GridGeometry, cells: CellGrid) -> List[Coord]:
    """Filled cells of a drawn tile, normalized next to the origin."""
    filled = _filled_cells(cells)
    off_q, off_r = normalization_offset(geometry, filled)
    return [(q + off_q, r + off_r) for q, r in filled]


def normalize_edge_state(geometry: GridGeometry, cells: CellGrid, edge_grid: Any) -> EdgeState:
    """Re-key edge marks drawn at ``edge_grid[r][q]`` by normalized tile coordinate.

    Cells without marks get all-false vectors; a vector of the wrong length
    for the cell's type is rejected.
    """
    filled = _filled_cells(cells)
    if not filled:
        return {}
    off_q, off_r = normalization_offset(geometry, filled)
    rows = _as_listish(edge_grid)

    state: EdgeState = {}
    for q, r in filled:
        norm = (q + off_q, r + off_r)
        k = geometry.num_edges(norm)
        marks: Any = None
        if 0 <= r < len(rows):
            row = _as_listish(rows[r])
            if 0 <= q < len(row):
                marks = row[q]
        if marks is None:
            state[norm] = (False,) * k
            continue
        marks = _as_listish(marks)
        if len(marks) != k:
            raise ValueError(
                f"cell ({q},{r}) needs {k} edge flags on a {geometry.name} grid, got {len(marks)}"
            )
        state[norm] = tuple(_truthy(m) for m in marks)
    return state


def _is_tile_list(tiles_input: Any) -> bool:
    tiles = _as_listish(tiles_input)
    if not tiles:
        return False
    first_row = _as_listish(tiles[0])
    return bool(first_row) and isinstance(first_row[0], (list, tuple))


def coerce_tiles(tiles_input: Any) -> List[CellGrid]:
    """Accept one drawn tile (``bool[][]``) or several (``bool[][][]``)."""
    tiles = _as_listish(tiles_input)
    if not tiles:
        return []
    if _is_tile_list(tiles):
        return [_as_listish(t) for t in tiles]
    return [tiles]


def parse_tiling_request(payload: Any) -> Tuple[Optional[TilingRequest], Optional[str]]:
    """Return (request, error_message_or_None) for a JSON-like payload.

    Recognised keys: ``grid``, ``tiles`` (or ``tile``), ``width``, ``height``,
    ``edge_states`` (or ``edges``), ``maze`` and ``seed``.
    """
    if not isinstance(payload, dict) or not payload:
        return None, "nothing parsed from request"

    try:
        geometry = get_geometry(payload.get("grid") or CFG.DEFAULT_GRID)
    except KeyError as e:
        return None, str(e.args[0])

    width = _to_int(payload.get("width"))
    height = _to_int(payload.get("height"))
    if width is None or height is None:
        return None, "Bad region: width/height must be integers"
    if width <= 0 or height <= 0:
        return None, "Bad region: width/height must be positive"
    if width * height > CFG.MAX_REGION_CELLS:
        return None, f"Bad region: more than {CFG.MAX_REGION_CELLS} cells"

    raw_tiles = payload.get("tiles", payload.get("tile"))
    drawn = coerce_tiles(raw_tiles)
    if not drawn:
        return None, "Bad tiles: nothing parsed from request"
    tiles = [grid_to_coords(geometry, cells) for cells in drawn]
    if not any(tiles):
        return None, "Bad tiles: every tile is empty"

    edge_states: Optional[List[Optional[EdgeState]]] = None
    raw_edges = payload.get("edge_states", payload.get("edges"))
    if raw_edges is not None:
        # edge marks follow the tiles: one grid per drawn tile, or a bare grid for one tile
        per_tile = _as_listish(raw_edges) if _is_tile_list(raw_tiles) else [raw_edges]
        edge_states = []
        try:
            for idx, cells in enumerate(drawn):
                grid = per_tile[idx] if idx < len(per_tile) else None
                edge_states.append(normalize_edge_state(geometry, cells, grid) if grid is not None else None)
        except ValueError as e:
            return None, f"Bad edge states: {e}"

    seed = _to_int(payload.get("seed")) if payload.get("seed") is not None else None

    return TilingRequest(
        geometry=geometry,
        tiles=tiles,
        width=width,
        height=height,
        edge_states=edge_states,
        maze=_truthy(payload.get("maze", False)),
        seed=seed,
    ), None


__all__ = [
    "TilingRequest",
    "grid_to_coords",
    "normalize_edge_state",
    "coerce_tiles",
    "parse_tiling_request",
]
