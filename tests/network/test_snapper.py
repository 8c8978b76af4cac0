# tests/network/test_snapper.py
import numpy as np
import pytest

from rn_basis.domain.entities.geography import Point
from rn_basis.domain.network.network_graph import build_graph
from rn_basis.domain.network.network_snapper import VertexSnapper, snap


def _random_network(rng, n_lines=25):
    lines = []
    for _ in range(n_lines):
        pts = rng.uniform(0.0, 1000.0, size=(rng.integers(2, 6), 2))
        lines.append([tuple(p) for p in pts])
    return build_graph(lines)


def test_nearest_matches_brute_force():
    rng = np.random.default_rng(7)
    g = _random_network(rng)
    q = rng.uniform(-200.0, 1200.0, size=(300, 2))
    got = VertexSnapper(g).nearest(q)
    d = np.hypot(q[:, None, 0] - g.vertices[None, :, 0], q[:, None, 1] - g.vertices[None, :, 1])
    assert np.array_equal(got, np.argmin(d, axis=1))


def test_k_nearest_are_ordered_by_distance():
    g = build_graph([[(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]])
    assert snap(g, [(2.2, 0.0)], k=3).tolist() == [[2, 3, 1]]


def test_ties_go_to_lowest_vertex_id():
    # vertex 0 is (2, 0), vertex 1 is (0, 0); both are 1 m from the query
    g = build_graph([[(2.0, 0.0), (0.0, 0.0)]])
    assert snap(g, [Point(1.0, 0.0)]).tolist() == [[0]]
    assert snap(g, [(1.0, 5.0)], k=2).tolist() == [[0, 1]]


def test_fewer_vertices_than_k_returns_all():
    g = build_graph([[(0.0, 0.0), (10.0, 0.0)]])
    out = snap(g, [(1.0, 0.0), (9.0, 0.0)], k=5)
    assert out.shape == (2, 2)
    assert out.tolist() == [[0, 1], [1, 0]]


def test_subset_restricts_targets_but_returns_graph_ids(lattice_graph):
    s = VertexSnapper(lattice_graph, subset=[15, 10])
    assert len(s) == 2
    assert s.nearest([(0.0, 0.0), (300.0, 290.0)]).tolist() == [10, 15]


def test_invalid_k_and_empty_queries(lattice_graph):
    s = VertexSnapper(lattice_graph)
    with pytest.raises(ValueError):
        s.snap([(0.0, 0.0)], k=0)
    assert s.snap(np.empty((0, 2)), k=2).shape == (0, 2)


def test_distance_to_snapped_vertex(lattice_graph):
    d = VertexSnapper(lattice_graph).distance_to([(103.0, 104.0)])
    assert d.tolist() == [pytest.approx(5.0)]
