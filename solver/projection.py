# solver/projection.py - decode an assignment and audit the resulting tiling
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from models import Coord, EdgeInfo, EdgeState, EdgeViolation, OverlapViolation, Placement
from solver.geometry import GridGeometry
from solver.transforms import forward_edge_permutation


def project_solution(
    placements: Sequence[Placement],
    variables: Dict[int, int],
    assignment: Dict[int, bool],
    num_tile_types: int,
) -> Tuple[List[Placement], List[int]]:
    """Placements whose variable is true, plus how many of each tile type."""
    used = [p for p in placements if assignment.get(variables[p.id], False)]
    counts = [0] * num_tile_types
    for p in used:
        if 0 <= p.tile_type_index < num_tile_types:
            counts[p.tile_type_index] += 1
    return used, counts


def find_placement_overlaps(placements: Sequence[Placement]) -> List[OverlapViolation]:
    """Cells claimed by more than one placement.

    One (cell, earlier, later) triple per pair of placements sharing the cell,
    so three placements on one cell give three triples.
    """
    owners: Dict[Coord, List[int]] = {}
    overlaps: List[OverlapViolation] = []
    for idx, p in enumerate(placements):
        for cell in p.cells:
            seen = owners.setdefault(cell, [])
            for prev in seen:
                overlaps.append(OverlapViolation(cell, prev, idx))
            seen.append(idx)
    return overlaps


def placed_edge_values(
    geometry: GridGeometry,
    placement: Placement,
    edge_state: Optional[EdgeState],
) -> Dict[Coord, Tuple[bool, ...]]:
    """Authored marks carried onto the placed cells, indexed by placed edge."""
    values: Dict[Coord, Tuple[bool, ...]] = {}
    state = edge_state or {}
    for placed, original in zip(placement.cells, placement.original_cells):
        perm = forward_edge_permutation(geometry, placement.transform_index, original)
        marks = state.get(original)
        out = [False] * len(perm)
        if marks is not None:
            for edge, new_edge in enumerate(perm):
                out[new_edge] = bool(marks[edge])
        values[placed] = tuple(out)
    return values


def _edge_state_for(edge_states: Sequence[Optional[EdgeState]], tile_type_index: int) -> Optional[EdgeState]:
    if 0 <= tile_type_index < len(edge_states):
        return edge_states[tile_type_index]
    return None


def collect_edge_info(
    geometry: GridGeometry,
    placements: Sequence[Placement],
    edge_states: Sequence[Optional[EdgeState]],
) -> List[EdgeInfo]:
    """Every wall between two different placements with both sides' values.

    Each wall is reported once, from the lexicographically smaller cell.
    """
    owner: Dict[Coord, int] = {}
    values: Dict[Coord, Tuple[bool, ...]] = {}
    for idx, p in enumerate(placements):
        state = _edge_state_for(edge_states, p.tile_type_index)
        for cell, vals in placed_edge_values(geometry, p, state).items():
            owner.setdefault(cell, idx)
            values.setdefault(cell, vals)

    infos: List[EdgeInfo] = []
    for cell, idx in owner.items():
        for edge in range(geometry.num_edges(cell)):
            other = geometry.neighbor(cell, edge)
            other_idx = owner.get(other)
            if other_idx is None or other_idx == idx or not cell < other:
                continue
            back = geometry.reverse_edge(cell, edge)
            infos.append(
                EdgeInfo(
                    cell1=cell,
                    edge_index1=edge,
                    value1=values[cell][edge],
                    cell2=other,
                    edge_index2=back,
                    value2=values[other][back],
                    placement1=idx,
                    placement2=other_idx,
                )
            )
    return infos


def check_edge_adjacency_consistency(
    geometry: GridGeometry,
    placements: Sequence[Placement],
    edge_states: Optional[Sequence[Optional[EdgeState]]],
) -> List[EdgeViolation]:
    """Walls where two adjacent placements disagree about the mark.

    Works on any placement list, solved or hand-built, and reports rather
    than raises so encoder and geometry bugs show up in tests.
    """
    if not edge_states:
        return []
    return [
        EdgeViolation(
            cell1=info.cell1,
            edge_index1=info.edge_index1,
            value1=info.value1,
            cell2=info.cell2,
            edge_index2=info.edge_index2,
            value2=info.value2,
            placement1=info.placement1,
            placement2=info.placement2,
        )
        for info in collect_edge_info(geometry, placements, edge_states)
        if not info.is_consistent
    ]


__all__ = [
    "project_solution",
    "find_placement_overlaps",
    "placed_edge_values",
    "collect_edge_info",
    "check_edge_adjacency_consistency",
]
