# solver/maze.py - perfect maze from a tiling via a random spanning tree
from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence, Set

from config import CFG
from models import AdjacencyEdge, Coord, EdgeKey, MazeResult, Placement, Wall
from solver.geometry import GridGeometry


class UnionFind:
    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> bool:
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return False
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1
        return True

    def count_roots(self) -> int:
        return len({self.find(x) for x in range(len(self.parent))})


def _owner_map(placements: Sequence[Placement]) -> Dict[Coord, int]:
    owner: Dict[Coord, int] = {}
    for idx, p in enumerate(placements):
        for cell in p.cells:
            owner[cell] = idx
    return owner


def find_adjacency_edges(geometry: GridGeometry, placements: Sequence[Placement]) -> List[AdjacencyEdge]:
    """One edge per touching pair of placements, carrying every shared wall.

    Walls are recorded from the lower-indexed placement's side only.
    """
    owner = _owner_map(placements)
    edges: Dict[tuple, AdjacencyEdge] = {}
    for idx, p in enumerate(placements):
        for cell in p.cells:
            for edge in range(geometry.num_edges(cell)):
                other = owner.get(geometry.neighbor(cell, edge))
                if other is None or other == idx:
                    continue
                a, b = min(idx, other), max(idx, other)
                entry = edges.get((a, b))
                if entry is None:
                    entry = AdjacencyEdge(a, b)
                    edges[(a, b)] = entry
                if idx == a:
                    entry.shared_walls.append(Wall(cell, edge))
    return list(edges.values())


def collect_walls(geometry: GridGeometry, placements: Sequence[Placement]) -> Dict[EdgeKey, Wall]:
    """Every wall of every placement, one representative per physical wall.

    Walls inside a placement are passages, not walls.  The representative is
    the first side seen, so it always belongs to a placed cell.
    """
    owner = _owner_map(placements)
    walls: Dict[EdgeKey, Wall] = {}
    for idx, p in enumerate(placements):
        for cell in p.cells:
            for edge in range(geometry.num_edges(cell)):
                if owner.get(geometry.neighbor(cell, edge)) == idx:
                    continue
                key = geometry.canonical_edge_key(cell, edge)
                walls.setdefault(key, Wall(cell, edge))
    return walls


def random_spanning_tree(
    num_nodes: int,
    edges: Sequence[AdjacencyEdge],
    rng: random.Random,
) -> List[AdjacencyEdge]:
    """Randomized Kruskal.  A disconnected graph yields a spanning forest."""
    if num_nodes <= 1:
        return []
    uf = UnionFind(num_nodes)
    shuffled = list(edges)
    rng.shuffle(shuffled)
    tree: List[AdjacencyEdge] = []
    for edge in shuffled:
        if uf.union(edge.placement_a, edge.placement_b):
            tree.append(edge)
            if len(tree) == num_nodes - 1:
                break
    return tree


def _default_rng() -> random.Random:
    if CFG.MAZE_SEED is None:
        return random.Random()
    return random.Random(CFG.MAZE_SEED)


def carve_maze(
    geometry: GridGeometry,
    placements: Sequence[Placement],
    rng: Optional[random.Random] = None,
) -> MazeResult:
    """Open one shared wall per spanning-tree edge and return what is left."""
    if not placements:
        return MazeResult()
    rng = rng or _default_rng()

    adjacency = find_adjacency_edges(geometry, placements)
    tree = random_spanning_tree(len(placements), adjacency, rng)

    opened: Set[EdgeKey] = set()
    tree_edges = []
    for edge in tree:
        if not edge.shared_walls:
            continue
        wall = edge.shared_walls[rng.randrange(len(edge.shared_walls))]
        opened.add(geometry.canonical_edge_key(wall.cell, wall.edge_index))
        tree_edges.append((edge.placement_a, edge.placement_b, wall))

    remaining = [
        wall for key, wall in collect_walls(geometry, placements).items()
        if key not in opened
    ]
    return MazeResult(
        remaining_walls=remaining,
        spanning_tree_edges=tree_edges,
        adjacency_edges=adjacency,
        num_components=len(placements) - len(tree),
    )


__all__ = [
    "UnionFind",
    "find_adjacency_edges",
    "collect_walls",
    "random_spanning_tree",
    "carve_maze",
]
