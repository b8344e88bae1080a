# solver/geometry.py - lattice definitions for square, hex and triangle grids
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from models import Coord, EdgeKey


@dataclass(frozen=True)
class TransformResult:
    """One transform step applied to a single cell.

    ``neighbor_perm[i]`` is the local edge index, at the transformed cell, of
    what was edge ``i`` before the step.
    """

    coord: Coord
    neighbor_perm: Tuple[int, ...]


class GridGeometry:
    """Shared behaviour of the three lattice geometries.

    Subclasses only describe their neighbour tables and single-step
    rotate/flip.  Everything derived from those (neighbour lookup, reverse
    edges, canonical wall keys) lives here so the three variants cannot
    drift apart.
    """

    name: str = ""
    num_cell_types: int = 1
    num_rotations: int = 1
    neighbors: Tuple[Tuple[Coord, ...], ...] = ()

    def cell_type(self, coord: Coord) -> int:
        return 0

    def rotate(self, coord: Coord) -> TransformResult:
        raise NotImplementedError

    def flip(self, coord: Coord) -> TransformResult:
        raise NotImplementedError

    @property
    def num_transforms(self) -> int:
        return 2 * self.num_rotations

    def num_edges(self, coord: Coord) -> int:
        return len(self.neighbors[self.cell_type(coord)])

    def neighbor(self, coord: Coord, edge: int) -> Coord:
        dq, dr = self.neighbors[self.cell_type(coord)][edge]
        return (coord[0] + dq, coord[1] + dr)

    def reverse_edge(self, coord: Coord, edge: int) -> int:
        """Index of the same wall as seen from the neighbour across ``edge``."""
        other = self.neighbor(coord, edge)
        for idx, (dq, dr) in enumerate(self.neighbors[self.cell_type(other)]):
            if other[0] + dq == coord[0] and other[1] + dr == coord[1]:
                return idx
        raise AssertionError(
            f"{self.name}: neighbour {other} of {coord} has no edge pointing back"
        )

    def canonical_edge_key(self, coord: Coord, edge: int) -> EdgeKey:
        other = self.neighbor(coord, edge)
        if coord < other:
            return (coord[0], coord[1], edge)
        back = self.reverse_edge(coord, edge)
        return (other[0], other[1], back)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


# ---------------- square ----------------

class SquareGeometry(GridGeometry):
    name = "square"
    num_cell_types = 1
    num_rotations = 4
    # up, right, down, left
    neighbors = (((0, -1), (1, 0), (0, 1), (-1, 0)),)

    _ROTATE_PERM = (1, 2, 3, 0)
    _FLIP_PERM = (0, 3, 2, 1)

    def rotate(self, coord: Coord) -> TransformResult:
        q, r = coord
        return TransformResult((-r, q), self._ROTATE_PERM)

    def flip(self, coord: Coord) -> TransformResult:
        q, r = coord
        return TransformResult((-q, r), self._FLIP_PERM)


# ---------------- hex (axial) ----------------

class HexGeometry(GridGeometry):
    name = "hex"
    num_cell_types = 1
    num_rotations = 6
    # E, SE, SW, W, NW, NE
    neighbors = (((1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1), (1, -1)),)

    _ROTATE_PERM = (1, 2, 3, 4, 5, 0)
    _FLIP_PERM = (3, 2, 1, 0, 5, 4)

    def rotate(self, coord: Coord) -> TransformResult:
        q, r = coord
        return TransformResult((-r, q + r), self._ROTATE_PERM)

    def flip(self, coord: Coord) -> TransformResult:
        # mirror across the vertical axis: E <-> W, SE <-> SW, NE <-> NW
        q, r = coord
        return TransformResult((-q - r, r), self._FLIP_PERM)


# ---------------- triangle ----------------

class TriangleGeometry(GridGeometry):
    """Alternating up/down triangles; ``(q + r) % 2 == 0`` is up-pointing.

    Transforms move the three lattice vertices of a cell and rebuild the cell
    from the result.  Vertices live on integer ``(X, Y)`` points with ``X``
    counted in half edge lengths; every vertex has ``X + Y`` odd.
    """

    name = "triangle"
    num_cell_types = 2
    num_rotations = 6
    neighbors = (
        ((-1, 0), (1, 0), (0, 1)),   # up: left, right, below
        ((-1, 0), (1, 0), (0, -1)),  # down: left, right, above
    )

    _ROTATE_PERMS = ((2, 1, 0), (0, 2, 1))
    _FLIP_PERMS = ((1, 0, 2), (1, 0, 2))

    def cell_type(self, coord: Coord) -> int:
        return (coord[0] + coord[1]) % 2

    @staticmethod
    def _cell_vertices(coord: Coord) -> List[Tuple[int, int]]:
        q, r = coord
        if (q + r) % 2 == 0:
            return [(q + 1, r), (q, r + 1), (q + 2, r + 1)]
        return [(q, r), (q + 2, r), (q + 1, r + 1)]

    @staticmethod
    def _vertices_to_cell(verts: List[Tuple[int, int]]) -> Coord:
        ys = [y for _, y in verts]
        top, bottom = min(ys), max(ys)
        assert bottom - top == 1, f"not a lattice triangle: {verts}"
        upper = [x for x, y in verts if y == top]
        lower = [x for x, y in verts if y == bottom]
        if len(upper) == 1 and len(lower) == 2:
            return (min(lower), top)
        assert len(upper) == 2 and len(lower) == 1, f"not a lattice triangle: {verts}"
        return (min(upper), top)

    @staticmethod
    def _to_lattice(vertex: Tuple[int, int]) -> Tuple[int, int]:
        x, y = vertex
        assert (x - 1 - y) % 2 == 0, f"vertex {vertex} is off the lattice"
        return ((x - 1 - y) // 2, y)

    @staticmethod
    def _from_lattice(u: int, w: int) -> Tuple[int, int]:
        return (1 + 2 * u + w, w)

    def _map_cell(self, coord: Coord, step) -> Coord:
        moved = []
        for vertex in self._cell_vertices(coord):
            u, w = self._to_lattice(vertex)
            moved.append(self._from_lattice(*step(u, w)))
        return self._vertices_to_cell(moved)

    def rotate(self, coord: Coord) -> TransformResult:
        new_coord = self._map_cell(coord, lambda u, w: (-w, u + w))
        return TransformResult(new_coord, self._ROTATE_PERMS[self.cell_type(coord)])

    def flip(self, coord: Coord) -> TransformResult:
        new_coord = self._map_cell(coord, lambda u, w: (-u - w, w))
        return TransformResult(new_coord, self._FLIP_PERMS[self.cell_type(coord)])


SQUARE = SquareGeometry()
HEX = HexGeometry()
TRIANGLE = TriangleGeometry()

GEOMETRIES: Dict[str, GridGeometry] = {
    "square": SQUARE,
    "hex": HEX,
    "triangle": TRIANGLE,
    # polyform names
    "polyomino": SQUARE,
    "polyhex": HEX,
    "polyiamond": TRIANGLE,
}


def get_geometry(name) -> GridGeometry:
    if isinstance(name, GridGeometry):
        return name
    key = str(name or "").strip().lower()
    geometry = GEOMETRIES.get(key)
    if geometry is None:
        raise KeyError(f"Unknown grid type: {name!r}")
    return geometry


__all__ = [
    "TransformResult",
    "GridGeometry",
    "SquareGeometry",
    "HexGeometry",
    "TriangleGeometry",
    "SQUARE",
    "HEX",
    "TRIANGLE",
    "GEOMETRIES",
    "get_geometry",
]
