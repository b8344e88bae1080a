import random

import pytest

from models import AdjacencyEdge, Placement
from solver.geometry import HEX, SQUARE
from solver.maze import (
    UnionFind,
    carve_maze,
    collect_walls,
    find_adjacency_edges,
    random_spanning_tree,
)


def _monos(cells):
    return [Placement(i, 0, (c,), ((0, 0),)) for i, c in enumerate(cells)]


def _keys(geometry, walls):
    return [geometry.canonical_edge_key(w.cell, w.edge_index) for w in walls]


def test_union_find_merges_and_counts():
    uf = UnionFind(4)
    assert uf.count_roots() == 4
    assert uf.union(0, 1)
    assert uf.union(2, 3)
    assert not uf.union(1, 0)
    assert uf.count_roots() == 2
    assert uf.union(1, 3)
    assert uf.find(0) == uf.find(2)
    assert uf.count_roots() == 1


def test_two_placements_sharing_one_wall():
    placements = _monos([(0, 0), (1, 0)])
    maze = carve_maze(SQUARE, placements, random.Random(1))
    keys = _keys(SQUARE, maze.remaining_walls)
    assert len(maze.spanning_tree_edges) == 1
    assert (0, 0, 1) not in keys
    assert len(keys) == 6
    assert len(set(keys)) == 6
    assert maze.num_components == 1


def test_walls_inside_a_placement_are_not_walls():
    domino = [Placement(0, 0, ((0, 0), (1, 0)), ((0, 0), (1, 0)))]
    maze = carve_maze(SQUARE, domino, random.Random(0))
    assert maze.spanning_tree_edges == []
    assert len(maze.remaining_walls) == 6
    assert (0, 0, 1) not in _keys(SQUARE, maze.remaining_walls)


def test_grid_of_monominoes_becomes_a_spanning_tree():
    placements = _monos([(q, r) for r in range(3) for q in range(3)])
    maze = carve_maze(SQUARE, placements, random.Random(42))
    assert len(maze.spanning_tree_edges) == len(placements) - 1

    uf = UnionFind(len(placements))
    for a, b, _wall in maze.spanning_tree_edges:
        assert uf.union(a, b)
    assert uf.count_roots() == 1
    assert maze.num_components == 1
    # 24 distinct walls on a 3x3 board, 8 opened
    assert len(maze.remaining_walls) == 16


def test_opened_walls_are_shared_by_the_pair():
    placements = _monos([(q, r) for r in range(2) for q in range(3)])
    maze = carve_maze(SQUARE, placements, random.Random(5))
    for a, b, wall in maze.spanning_tree_edges:
        other = SQUARE.neighbor(wall.cell, wall.edge_index)
        cells = {placements[a].cells[0], placements[b].cells[0]}
        assert {wall.cell, other} == cells


def test_disconnected_placements_make_a_forest():
    placements = _monos([(0, 0), (2, 0)])
    maze = carve_maze(SQUARE, placements, random.Random(3))
    assert maze.spanning_tree_edges == []
    assert maze.num_components == 2
    assert len(maze.remaining_walls) == 8


def test_hex_triangle_of_cells():
    placements = _monos([(0, 0), (1, 0), (0, 1)])
    adjacency = find_adjacency_edges(HEX, placements)
    assert len(adjacency) == 3
    assert all(len(e.shared_walls) == 1 for e in adjacency)
    maze = carve_maze(HEX, placements, random.Random(9))
    assert len(maze.spanning_tree_edges) == 2
    assert len(maze.remaining_walls) == 18 - 3 - 2


def test_adjacency_collects_every_shared_wall():
    placements = [
        Placement(0, 0, ((0, 0), (1, 0)), ((0, 0), (1, 0))),
        Placement(1, 0, ((0, 1), (1, 1)), ((0, 0), (1, 0))),
    ]
    adjacency = find_adjacency_edges(SQUARE, placements)
    assert len(adjacency) == 1
    assert (adjacency[0].placement_a, adjacency[0].placement_b) == (0, 1)
    assert sorted(w.cell for w in adjacency[0].shared_walls) == [(0, 0), (1, 0)]


def test_collect_walls_deduplicates():
    walls = collect_walls(SQUARE, _monos([(0, 0), (1, 0)]))
    assert len(walls) == 7


def test_same_seed_same_maze():
    placements = _monos([(q, r) for r in range(4) for q in range(4)])
    first = carve_maze(SQUARE, placements, random.Random(11))
    second = carve_maze(SQUARE, placements, random.Random(11))
    assert first.spanning_tree_edges == second.spanning_tree_edges
    assert first.remaining_walls == second.remaining_walls


def test_spanning_tree_stops_at_n_minus_one():
    edges = [AdjacencyEdge(0, 1), AdjacencyEdge(1, 2), AdjacencyEdge(0, 2), AdjacencyEdge(2, 3)]
    tree = random_spanning_tree(4, edges, random.Random(0))
    assert len(tree) == 3
    assert random_spanning_tree(1, [], random.Random(0)) == []


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_empty_tiling_gives_empty_maze(seed):
    maze = carve_maze(SQUARE, [], random.Random(seed))
    assert maze.remaining_walls == []
    assert maze.num_components == 0
