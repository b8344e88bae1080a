# solver/encoder.py - CNF encoding of an exact-cover tiling with edge marks
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models import Coord, EdgeKey, EdgeState, Placement, TilingResult, TilingStats
from solver.backends import SatBackend
from solver.geometry import GridGeometry
from solver.placements import cells_to_placements, generate_placements, max_bounding_box
from solver.projection import project_solution
from solver.transforms import forward_edge_permutation

StatsCallback = Callable[[int, int], None]


def _valid_dimension(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def add_coverage_clauses(
    backend: SatBackend,
    cell_index: Dict[Coord, List[int]],
    variables: Dict[int, int],
    width: int,
    height: int,
) -> None:
    """Every region cell is covered by at least one active placement.

    A cell nothing can reach gets the empty clause; the solver reports UNSAT.
    """
    for r in range(height):
        for q in range(width):
            covering = cell_index.get((q, r), ())
            backend.add_clause([variables[pid] for pid in covering])


def add_non_overlap_clauses(
    backend: SatBackend,
    cell_index: Dict[Coord, List[int]],
    variables: Dict[int, int],
    width: int,
    height: int,
    halo: Tuple[int, int],
) -> None:
    """Pairwise at-most-one over every cell of the region plus its halo.

    Quadratic in the number of placements covering a cell.
    """
    halo_w, halo_h = halo
    for r in range(-halo_h, height + halo_h + 1):
        for q in range(-halo_w, width + halo_w + 1):
            covering = cell_index.get((q, r))
            if not covering or len(covering) < 2:
                continue
            for i in range(len(covering)):
                a = variables[covering[i]]
                for j in range(i + 1, len(covering)):
                    backend.add_clause([-a, -variables[covering[j]]])


def add_edge_clauses(
    backend: SatBackend,
    geometry: GridGeometry,
    placements: Sequence[Placement],
    variables: Dict[int, int],
    edge_states: Sequence[Optional[EdgeState]],
) -> Dict[EdgeKey, int]:
    """Pin every wall of every placed cell to the tile's authored mark.

    Unmarked edges are pinned to false as well; otherwise two placements
    meeting at a wall that only one of them marks would not be forced to
    agree.  A tile with no edge state (``None`` or past the end of the list)
    counts as entirely unmarked.  Returns the wall variables by canonical
    edge key.
    """
    wall_vars: Dict[EdgeKey, int] = {}
    perm_cache: Dict[Tuple[int, int], Tuple[int, ...]] = {}

    for p in placements:
        state = edge_states[p.tile_type_index] if p.tile_type_index < len(edge_states) else None
        state = state or {}
        p_var = variables[p.id]
        for placed, original in zip(p.cells, p.original_cells):
            ctype = geometry.cell_type(original)
            key = (p.transform_index, ctype)
            perm = perm_cache.get(key)
            if perm is None:
                perm = forward_edge_permutation(geometry, p.transform_index, original)
                perm_cache[key] = perm
            marks = state.get(original)
            k = len(perm)
            assert marks is None or len(marks) == k, (
                f"edge state for {original} has {len(marks)} entries, expected {k}"
            )
            assert geometry.num_edges(placed) == k, (
                f"{geometry.name}: cell type mismatch between {original} and {placed}"
            )
            for edge in range(k):
                marked = bool(marks[edge]) if marks is not None else False
                wall_key = geometry.canonical_edge_key(placed, perm[edge])
                w_var = wall_vars.get(wall_key)
                if w_var is None:
                    w_var = backend.new_variable()
                    wall_vars[wall_key] = w_var
                backend.add_clause([-p_var, w_var if marked else -w_var])
    return wall_vars


def solve_tiling(
    geometry: GridGeometry,
    tiles: Sequence[Sequence[Coord]],
    width: int,
    height: int,
    backend: SatBackend,
    on_stats: Optional[StatsCallback] = None,
    edge_states: Optional[Sequence[Optional[EdgeState]]] = None,
) -> TilingResult:
    """Tile ``width x height`` with the given tiles and decode the answer.

    ``tiles`` holds one normalized cell list per tile type (empty tiles are
    dropped, but keep their index so counts line up with the input).
    ``edge_states``, when given, is indexed the same way.  ``on_stats`` fires
    exactly once with ``(num_variables, num_clauses)`` right before the
    backend is asked to solve.  Backend errors propagate.
    """
    if not (_valid_dimension(width) and _valid_dimension(height)):
        return TilingResult(False, stats=TilingStats())

    num_tile_types = len(tiles)
    present = [(idx, list(cells)) for idx, cells in enumerate(tiles) if cells]
    if not present:
        return TilingResult(False, stats=TilingStats(), tile_type_counts=[0] * num_tile_types)

    placements: List[Placement] = []
    for idx, cells in present:
        placements.extend(
            generate_placements(
                geometry,
                cells,
                width,
                height,
                tile_type_index=idx,
                first_id=len(placements),
            )
        )
    if not placements:
        return TilingResult(False, stats=TilingStats(), tile_type_counts=[0] * num_tile_types)

    variables: Dict[int, int] = {p.id: backend.new_variable() for p in placements}
    cell_index = cells_to_placements(placements)
    halo = max_bounding_box(geometry, [cells for _, cells in present])

    add_coverage_clauses(backend, cell_index, variables, width, height)
    add_non_overlap_clauses(backend, cell_index, variables, width, height, halo)
    if edge_states is not None:
        add_edge_clauses(backend, geometry, placements, variables, edge_states)

    num_vars = backend.get_variable_count()
    num_clauses = backend.get_clause_count()
    stats = TilingStats(num_vars, num_clauses, len(placements))
    if on_stats is not None:
        on_stats(num_vars, num_clauses)

    result = backend.solve()
    if not result.satisfiable:
        return TilingResult(False, stats=stats, tile_type_counts=[0] * num_tile_types)

    used, counts = project_solution(placements, variables, result.assignment, num_tile_types)
    return TilingResult(True, placements=used, stats=stats, tile_type_counts=counts)


__all__ = [
    "StatsCallback",
    "add_coverage_clauses",
    "add_non_overlap_clauses",
    "add_edge_clauses",
    "solve_tiling",
]
