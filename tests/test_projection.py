from models import Placement
from solver.geometry import HEX, SQUARE
from solver.projection import (
    check_edge_adjacency_consistency,
    collect_edge_info,
    find_placement_overlaps,
    placed_edge_values,
    project_solution,
)

RIGHT_MARKED = {(0, 0): (False, True, False, False)}


def _mono(pid, cell, transform_index=0, tile_type_index=0):
    return Placement(
        id=pid,
        transform_index=transform_index,
        cells=(cell,),
        original_cells=((0, 0),),
        tile_type_index=tile_type_index,
    )


def test_overlap_reported_once_per_shared_cell():
    a = Placement(0, 0, ((0, 0), (1, 0)), ((0, 0), (1, 0)))
    b = Placement(1, 0, ((1, 0), (2, 0)), ((0, 0), (1, 0)))
    overlaps = find_placement_overlaps([a, b])
    assert len(overlaps) == 1
    assert overlaps[0].cell == (1, 0)
    assert (overlaps[0].placement_a, overlaps[0].placement_b) == (0, 1)


def test_three_placements_on_one_cell_give_every_pair():
    placements = [_mono(0, (0, 0)), _mono(1, (0, 0)), _mono(2, (0, 0))]
    pairs = [(o.placement_a, o.placement_b) for o in find_placement_overlaps(placements)]
    assert pairs == [(0, 1), (0, 2), (1, 2)]


def test_disjoint_placements_have_no_overlaps():
    assert find_placement_overlaps([_mono(0, (0, 0)), _mono(1, (1, 0))]) == []


def test_mismatched_marks_are_reported():
    placements = [_mono(0, (0, 0)), _mono(1, (1, 0))]
    violations = check_edge_adjacency_consistency(SQUARE, placements, [RIGHT_MARKED])
    assert len(violations) == 1
    v = violations[0]
    assert (v.cell1, v.edge_index1, v.value1) == ((0, 0), 1, True)
    assert (v.cell2, v.edge_index2, v.value2) == ((1, 0), 3, False)
    assert (v.placement1, v.placement2) == (0, 1)


def test_rotated_neighbour_matches_mark():
    # half turn moves the right mark onto the left edge
    placements = [_mono(0, (0, 0)), _mono(1, (1, 0), transform_index=2)]
    assert check_edge_adjacency_consistency(SQUARE, placements, [RIGHT_MARKED]) == []


def test_no_edge_states_means_no_violations():
    placements = [_mono(0, (0, 0)), _mono(1, (1, 0))]
    assert check_edge_adjacency_consistency(SQUARE, placements, None) == []
    assert check_edge_adjacency_consistency(SQUARE, placements, []) == []


def test_collect_edge_info_lists_each_shared_wall_once():
    placements = [_mono(0, (0, 0)), _mono(1, (1, 0)), _mono(2, (0, 1))]
    infos = collect_edge_info(SQUARE, placements, [RIGHT_MARKED])
    assert len(infos) == 2
    consistent = {(i.cell1, i.cell2): i.is_consistent for i in infos}
    assert consistent == {((0, 0), (1, 0)): False, ((0, 0), (0, 1)): True}


def test_placed_edge_values_follow_the_transform():
    hex_state = {(0, 0): (True, False, False, False, False, False)}
    p = Placement(0, 1, ((2, 2),), ((0, 0),))
    assert placed_edge_values(HEX, p, hex_state) == {(2, 2): (False, True, False, False, False, False)}
    assert placed_edge_values(HEX, p, None) == {(2, 2): (False,) * 6}


def test_project_solution_counts_per_tile_type():
    placements = [_mono(0, (0, 0), tile_type_index=0), _mono(1, (1, 0), tile_type_index=1),
                  _mono(2, (2, 0), tile_type_index=1)]
    variables = {0: 1, 1: 2, 2: 3}
    used, counts = project_solution(placements, variables, {1: False, 2: True, 3: True}, 3)
    assert [p.id for p in used] == [1, 2]
    assert counts == [0, 2, 0]
