# solver/transforms.py - symmetry group of a geometry and its edge permutations
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from models import Coord
from solver.geometry import GridGeometry, TransformResult


@dataclass(frozen=True)
class BoundingBox:
    min_q: int
    max_q: int
    min_r: int
    max_r: int

    @property
    def width(self) -> int:
        return self.max_q - self.min_q + 1

    @property
    def height(self) -> int:
        return self.max_r - self.min_r + 1


@dataclass(frozen=True)
class TransformEntry:
    """One of the ``2R`` images of a tile.

    ``cells`` is translation-normalized and sorted by ``(r, q)``;
    ``original_indices[i]`` is the position in the input tile list of the cell
    that landed on ``cells[i]``.
    """

    transform_index: int
    cells: Tuple[Coord, ...]
    original_indices: Tuple[int, ...]


def bounding_box(coords: Sequence[Coord]) -> BoundingBox:
    if not coords:
        return BoundingBox(0, -1, 0, -1)
    qs = [q for q, _ in coords]
    rs = [r for _, r in coords]
    return BoundingBox(min(qs), max(qs), min(rs), max(rs))


def normalization_offset(geometry: GridGeometry, coords: Sequence[Coord]) -> Tuple[int, int]:
    """Shift that moves ``coords`` next to the origin without changing cell types."""
    if not coords:
        return (0, 0)
    off_q = -min(q for q, _ in coords)
    off_r = -min(r for _, r in coords)
    if geometry.num_cell_types == 2 and (off_q + off_r) % 2 != 0:
        off_q += 1
    return (off_q, off_r)


def normalize_coords(geometry: GridGeometry, coords: Sequence[Coord]) -> List[Coord]:
    off_q, off_r = normalization_offset(geometry, coords)
    return [(q + off_q, r + off_r) for q, r in coords]


def _check_transform_index(geometry: GridGeometry, transform_index: int) -> None:
    assert 0 <= transform_index < geometry.num_transforms, (
        f"transform {transform_index} out of range for {geometry.name} "
        f"(0..{geometry.num_transforms - 1})"
    )


def apply_transform(geometry: GridGeometry, coord: Coord, transform_index: int) -> TransformResult:
    """Compose the single steps of ``transform_index`` on one cell.

    Indices ``0..R-1`` rotate that many times; ``R..2R-1`` flip once and then
    rotate ``index - R`` times.  The permutation is tracked alongside the cell
    because triangle steps depend on the cell type at each step.
    """
    _check_transform_index(geometry, transform_index)
    current = coord
    perm = tuple(range(geometry.num_edges(coord)))

    steps = []
    if transform_index >= geometry.num_rotations:
        steps.append(geometry.flip)
    steps.extend([geometry.rotate] * (transform_index % geometry.num_rotations))

    for step in steps:
        res = step(current)
        perm = tuple(res.neighbor_perm[p] for p in perm)
        current = res.coord
    return TransformResult(current, perm)


def forward_edge_permutation(
    geometry: GridGeometry,
    transform_index: int,
    cell: Coord = (0, 0),
) -> Tuple[int, ...]:
    """Original local edge index -> edge index after the transform.

    Square and hex permutations are the same for every cell; on the triangle
    lattice they depend on the type of ``cell``.
    """
    return apply_transform(geometry, cell, transform_index).neighbor_perm


def inverse_edge_permutation(
    geometry: GridGeometry,
    transform_index: int,
    cell: Coord = (0, 0),
) -> Tuple[int, ...]:
    forward = forward_edge_permutation(geometry, transform_index, cell)
    inverse = [0] * len(forward)
    for old, new in enumerate(forward):
        inverse[new] = old
    return tuple(inverse)


def _entry(geometry: GridGeometry, coords: List[Coord], transform_index: int) -> TransformEntry:
    normalized = normalize_coords(geometry, coords)
    order = sorted(range(len(normalized)), key=lambda i: (normalized[i][1], normalized[i][0]))
    cells = tuple(normalized[i] for i in order)
    assert len(set(cells)) == len(cells), (
        f"{geometry.name}: transform {transform_index} is not injective on {coords}"
    )
    return TransformEntry(transform_index, cells, tuple(order))


def enumerate_transforms(geometry: GridGeometry, tile_cells: Sequence[Coord]) -> List[TransformEntry]:
    """All ``2 * num_rotations`` images of a tile, rotations first.

    Shapes that coincide are kept: the cell sets may match while the edge
    orientation differs, and edge constraints depend on the latter.
    """
    if not tile_cells:
        return []

    entries: List[TransformEntry] = []
    current = list(tile_cells)
    for rot in range(geometry.num_rotations):
        entries.append(_entry(geometry, current, rot))
        current = [geometry.rotate(c).coord for c in current]

    current = [geometry.flip(c).coord for c in tile_cells]
    for rot in range(geometry.num_rotations):
        entries.append(_entry(geometry, current, geometry.num_rotations + rot))
        current = [geometry.rotate(c).coord for c in current]

    return entries


__all__ = [
    "BoundingBox",
    "TransformEntry",
    "bounding_box",
    "normalization_offset",
    "normalize_coords",
    "apply_transform",
    "forward_edge_permutation",
    "inverse_edge_permutation",
    "enumerate_transforms",
]
