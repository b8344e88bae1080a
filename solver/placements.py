# solver/placements.py - candidate placements of a tile over a region
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from models import Coord, Placement
from solver.geometry import GridGeometry
from solver.transforms import bounding_box, enumerate_transforms


def in_region(cell: Coord, width: int, height: int) -> bool:
    return 0 <= cell[0] < width and 0 <= cell[1] < height


def max_bounding_box(geometry: GridGeometry, tiles: Iterable[Sequence[Coord]]) -> Tuple[int, int]:
    """Largest (width, height) over every transform of every tile."""
    max_w = 0
    max_h = 0
    for tile_cells in tiles:
        for entry in enumerate_transforms(geometry, tile_cells):
            bb = bounding_box(entry.cells)
            max_w = max(max_w, bb.width)
            max_h = max(max_h, bb.height)
    return max_w, max_h


def generate_placements(
    geometry: GridGeometry,
    tile_cells: Sequence[Coord],
    width: int,
    height: int,
    *,
    tile_type_index: int = 0,
    first_id: int = 0,
) -> List[Placement]:
    """Every transform x translation of ``tile_cells`` touching the region.

    Translations are bounded by the largest transformed bounding box so a
    placement that overlaps ``[0, width) x [0, height)`` by a single cell is
    still found.  Cells may hang outside the region.  On two-type lattices a
    translation with odd ``dq + dr`` would swap up and down cells, so those
    are never generated.
    """
    if not tile_cells:
        return []

    transforms = enumerate_transforms(geometry, tile_cells)
    max_w, max_h = max_bounding_box(geometry, [tile_cells])
    check_parity = geometry.num_cell_types > 1

    placements: List[Placement] = []
    next_id = first_id
    for entry in transforms:
        original_cells = tuple(tile_cells[i] for i in entry.original_indices)
        for off_r in range(-max_h + 1, height):
            for off_q in range(-max_w, width):
                if check_parity and (off_q + off_r) % 2 != 0:
                    continue
                cells = tuple((q + off_q, r + off_r) for q, r in entry.cells)
                if not any(in_region(c, width, height) for c in cells):
                    continue
                placements.append(
                    Placement(
                        id=next_id,
                        transform_index=entry.transform_index,
                        cells=cells,
                        original_cells=original_cells,
                        tile_type_index=tile_type_index,
                    )
                )
                next_id += 1
    return placements


def cells_to_placements(placements: Sequence[Placement]) -> Dict[Coord, List[int]]:
    """Index from absolute cell to the ids of the placements covering it."""
    index: Dict[Coord, List[int]] = defaultdict(list)
    for p in placements:
        for cell in p.cells:
            index[cell].append(p.id)
    return index


__all__ = [
    "in_region",
    "max_bounding_box",
    "generate_placements",
    "cells_to_placements",
]
