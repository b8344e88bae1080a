from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# (q, r); meaning depends on the grid geometry.
Coord = Tuple[int, int]

# Authored edge marks of one tile, keyed by normalized tile coordinate.
EdgeState = Dict[Coord, Tuple[bool, ...]]

# (q, r, edge_index) seen from the lexicographically smaller cell.
EdgeKey = Tuple[int, int, int]


@dataclass(frozen=True)
class Placement:
    id: int
    transform_index: int
    cells: Tuple[Coord, ...]
    original_cells: Tuple[Coord, ...]
    tile_type_index: int = 0


@dataclass(frozen=True)
class Wall:
    cell: Coord
    edge_index: int


@dataclass
class AdjacencyEdge:
    placement_a: int
    placement_b: int
    shared_walls: List[Wall] = field(default_factory=list)


@dataclass(frozen=True)
class TilingStats:
    num_variables: int = 0
    num_clauses: int = 0
    num_placements: int = 0

    def as_dict(self):
        return {
            "num_variables": self.num_variables,
            "num_clauses": self.num_clauses,
            "num_placements": self.num_placements,
        }


@dataclass
class TilingResult:
    satisfiable: bool
    placements: List[Placement] = field(default_factory=list)
    stats: TilingStats = field(default_factory=TilingStats)
    tile_type_counts: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class OverlapViolation:
    cell: Coord
    placement_a: int
    placement_b: int


@dataclass(frozen=True)
class EdgeViolation:
    cell1: Coord
    edge_index1: int
    value1: bool
    cell2: Coord
    edge_index2: int
    value2: bool
    placement1: Optional[int] = None
    placement2: Optional[int] = None


@dataclass(frozen=True)
class EdgeInfo:
    cell1: Coord
    edge_index1: int
    value1: bool
    cell2: Coord
    edge_index2: int
    value2: bool
    placement1: int
    placement2: int

    @property
    def is_consistent(self) -> bool:
        return self.value1 == self.value2


@dataclass
class MazeResult:
    remaining_walls: List[Wall] = field(default_factory=list)
    spanning_tree_edges: List[Tuple[int, int, Wall]] = field(default_factory=list)
    adjacency_edges: List[AdjacencyEdge] = field(default_factory=list)
    num_components: int = 0
