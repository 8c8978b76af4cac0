# tests/network/test_knots.py
import numpy as np
import pytest
from shapely.geometry import Point as ShapelyPoint

from rn_basis.domain.errors import DegenerateKnotSet
from rn_basis.domain.network.network_graph import build_graph
from rn_basis.domain.network.network_knots import (
    candidate_knots,
    grid_points,
    grid_side,
    observation_hull,
    select_knots,
    target_count_for,
)
from rn_basis.domain.network.network_snapper import VertexSnapper

INNER_SQUARE = [5, 6, 10, 9]  # lattice vertices spanning [100, 200]^2


def test_grid_is_square_and_spans_bbox():
    g = grid_points((0.0, 0.0, 10.0, 20.0), 9)
    assert g.shape == (9, 2)
    assert g.min(axis=0).tolist() == [0.0, 0.0]
    assert g.max(axis=0).tolist() == [10.0, 20.0]
    assert grid_points((0.0, 0.0, 1.0, 1.0), 10).shape == (25, 2)
    assert grid_points((0.0, 0.0, 1.0, 1.0), 1).tolist() == [[0.0, 0.0]]
    with pytest.raises(ValueError):
        grid_points((0.0, 0.0, 1.0, 1.0), 0)


def test_target_count_defaults_to_one_and_a_half_per_observation():
    assert target_count_for(10) == 15
    assert target_count_for(0) == 1


def test_lattice_knots_are_the_hull_vertices(lattice_graph, trace_hooks):
    obs = INNER_SQUARE + [5, 9]  # duplicates are allowed
    sel = select_knots(lattice_graph, None, 16, 1, obs, hooks=trace_hooks)
    assert sel.candidate_ids.tolist() == list(range(16))
    assert sel.knot_ids.tolist() == [5, 6, 9, 10]
    assert sel.m == 4 and sel.n_observations == 6 and sel.rank_ok
    assert trace_hooks.trace == ["knots_selected"]


def test_every_knot_lies_in_the_observation_hull():
    rng = np.random.default_rng(11)
    lines = [[tuple(p) for p in rng.uniform(0, 1000, size=(4, 2))] for _ in range(30)]
    g = build_graph(lines)
    obs = VertexSnapper(g).nearest(rng.uniform(200, 800, size=(40, 2)))
    sel = select_knots(g, None, 200, 3, obs)
    hull = observation_hull(g, obs)
    for k in sel.knot_ids:
        assert hull.distance(ShapelyPoint(*g.vertices[k])) <= 1e-6


def test_grid_sides_are_nested():
    sides = [grid_side(t) for t in range(1, 300)]
    assert sorted(set(sides)) == [1, 2, 3, 5, 9, 17, 33]
    assert all(s * s >= t for t, s in enumerate(sides, start=1))

    bbox = (-3.0, 7.0, 991.0, 1204.5)
    coarse = {tuple(p) for p in grid_points(bbox, 9).tolist()}
    fine = {tuple(p) for p in grid_points(bbox, 10).tolist()}
    assert coarse < fine


@pytest.mark.parametrize("seed", [3, 51, 54])
def test_denser_grids_never_lose_candidates(seed):
    rng = np.random.default_rng(seed)
    lines = [[tuple(p) for p in rng.uniform(0, 1000, size=(3, 2))] for _ in range(15)]
    g = build_graph(lines)
    snapper = VertexSnapper(g)
    previous = set()
    for t in range(1, 90):
        current = set(candidate_knots(g, None, t, 1, snapper=snapper).tolist())
        assert previous <= current, t
        previous = current


def test_far_grid_points_are_judged_by_their_snapped_vertex(lattice_graph):
    far_bbox = (-10_000.0, -10_000.0, 10_300.0, 10_300.0)
    # a 2x2 grid far outside the network snaps to the four lattice corners
    assert candidate_knots(lattice_graph, far_bbox, 4, 1).tolist() == [0, 3, 12, 15]

    full = select_knots(lattice_graph, far_bbox, 4, 1, [0, 3, 12, 15, 5, 6])
    assert full.knot_ids.tolist() == [0, 3, 12, 15]

    triangle = select_knots(lattice_graph, far_bbox, 4, 1, [0, 3, 12, 5, 6, 9])
    assert triangle.knot_ids.tolist() == [0, 3, 12]


def test_collinear_observations_use_a_line_hull(lattice_graph):
    # observations along the bottom street only
    sel = select_knots(lattice_graph, None, 16, 1, [0, 1, 2, 3, 1, 2])
    assert sel.knot_ids.tolist() == [0, 1, 2, 3]


def test_no_knot_inside_hull_is_fatal(lattice_graph, trace_hooks):
    with pytest.raises(DegenerateKnotSet):
        select_knots(lattice_graph, None, 4, 1, [5], hooks=trace_hooks)
    assert trace_hooks.errors and trace_hooks.errors[0][0] == "knots"


def test_too_many_knots_is_a_warning_not_an_error(lattice_graph, trace_hooks):
    sel = select_knots(lattice_graph, None, 16, 1, INNER_SQUARE, hooks=trace_hooks)
    assert sel.m == 4 and not sel.rank_ok
    assert "knot_rank_warning" in trace_hooks.trace
