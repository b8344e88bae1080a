import pytest

from solver.geometry import HEX, SQUARE, TRIANGLE, get_geometry
from solver.transforms import apply_transform

GEOMETRIES = [SQUARE, HEX, TRIANGLE]
SAMPLE_CELLS = [(q, r) for q in range(-2, 3) for r in range(-2, 3)]


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_rotating_r_times_is_identity(geometry):
    for cell in SAMPLE_CELLS:
        res = apply_transform(geometry, cell, 0)
        current = cell
        perm = tuple(range(geometry.num_edges(cell)))
        for _ in range(geometry.num_rotations):
            step = geometry.rotate(current)
            perm = tuple(step.neighbor_perm[p] for p in perm)
            current = step.coord
        assert current == cell
        assert perm == res.neighbor_perm


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_flip_is_an_involution(geometry):
    for cell in SAMPLE_CELLS:
        once = geometry.flip(cell)
        twice = geometry.flip(once.coord)
        assert twice.coord == cell
        assert tuple(twice.neighbor_perm[p] for p in once.neighbor_perm) == tuple(
            range(geometry.num_edges(cell))
        )


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_step_permutations_follow_neighbours(geometry):
    for cell in SAMPLE_CELLS:
        for step in (geometry.rotate, geometry.flip):
            moved = step(cell)
            for edge in range(geometry.num_edges(cell)):
                expected = step(geometry.neighbor(cell, edge)).coord
                assert geometry.neighbor(moved.coord, moved.neighbor_perm[edge]) == expected


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_every_transform_keeps_adjacency(geometry):
    for t in range(geometry.num_transforms):
        for cell in SAMPLE_CELLS:
            moved = apply_transform(geometry, cell, t)
            for edge in range(geometry.num_edges(cell)):
                other = apply_transform(geometry, geometry.neighbor(cell, edge), t).coord
                assert geometry.neighbor(moved.coord, moved.neighbor_perm[edge]) == other


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_reverse_edge_points_back(geometry):
    for cell in SAMPLE_CELLS:
        for edge in range(geometry.num_edges(cell)):
            other = geometry.neighbor(cell, edge)
            back = geometry.reverse_edge(cell, edge)
            assert geometry.neighbor(other, back) == cell


@pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: g.name)
def test_canonical_edge_key_is_symmetric(geometry):
    for cell in SAMPLE_CELLS:
        for edge in range(geometry.num_edges(cell)):
            other = geometry.neighbor(cell, edge)
            back = geometry.reverse_edge(cell, edge)
            key = geometry.canonical_edge_key(cell, edge)
            assert key == geometry.canonical_edge_key(other, back)
            assert (key[0], key[1]) == min(cell, other)


def test_triangle_cell_types_alternate():
    assert TRIANGLE.cell_type((0, 0)) == 0
    assert TRIANGLE.cell_type((1, 0)) == 1
    assert TRIANGLE.cell_type((0, 1)) == 1
    assert TRIANGLE.cell_type((-1, -1)) == 0
    # up cells look down, down cells look up
    assert TRIANGLE.neighbor((0, 0), 2) == (0, 1)
    assert TRIANGLE.neighbor((1, 0), 2) == (1, -1)


def test_triangle_rotation_swaps_orientation():
    res = TRIANGLE.rotate((0, 0))
    assert res.coord == (-1, 0)
    assert TRIANGLE.cell_type(res.coord) == 1
    assert res.neighbor_perm == (2, 1, 0)


def test_square_and_hex_steps():
    assert SQUARE.rotate((1, 0)).coord == (0, 1)
    assert SQUARE.flip((1, 2)).coord == (-1, 2)
    assert HEX.rotate((1, 0)).coord == (0, 1)
    assert HEX.flip((1, 0)).coord == (-1, 0)


def test_transform_counts():
    assert SQUARE.num_transforms == 8
    assert HEX.num_transforms == 12
    assert TRIANGLE.num_transforms == 12


def test_get_geometry_accepts_aliases():
    assert get_geometry("Square") is SQUARE
    assert get_geometry("polyhex") is HEX
    assert get_geometry(" polyiamond ") is TRIANGLE
    assert get_geometry(TRIANGLE) is TRIANGLE


def test_get_geometry_rejects_unknown_names():
    with pytest.raises(KeyError, match="Unknown grid type"):
        get_geometry("octagon")
