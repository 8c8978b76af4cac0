import logging
from collections.abc import Iterable, Sequence

import numpy as np
from scipy.spatial import cKDTree

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.domain.entities.geography import RoadGraph, Segment, SplitGeometry
from rn_basis.domain.errors import EmptyNetwork
from rn_basis.domain.network.network_splitter import split_polylines

log = logging.getLogger(__name__)

COINCIDENCE_TOL_M = 1e-6


def _coerce_geometry(source, *, at_midpoints: bool, hooks: PipelineHooks) -> SplitGeometry:
    if isinstance(source, SplitGeometry):
        return source
    items = list(source)
    if items and all(isinstance(s, Segment) for s in items):
        return SplitGeometry(items, [s.midpoint for s in items])
    return split_polylines(items, at_midpoints=at_midpoints, hooks=hooks)


def _merge_coincident(pts: np.ndarray, tol: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Map each point to a vertex id. Points within tol of each other share a vertex;
    vertex ids follow first appearance and take that point's coordinates.
    """
    parent = np.arange(len(pts))

    def find(i):
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i, j in cKDTree(pts).query_pairs(tol, output_type="ndarray"):
        ri, rj = find(i), find(j)
        if ri != rj:
            parent[max(ri, rj)] = min(ri, rj)

    roots = np.array([find(i) for i in range(len(pts))], dtype=np.int64)
    _, first, inverse = np.unique(roots, return_index=True, return_inverse=True)
    # renumber so that vertex ids follow first appearance order
    order = np.argsort(first, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    vid = rank[inverse.reshape(-1)]
    vertices = pts[np.sort(first)]
    return vid, vertices


def build_graph(
    source: SplitGeometry | Sequence[Segment] | Iterable[Sequence],
    *,
    tol: float = COINCIDENCE_TOL_M,
    at_midpoints: bool = False,
    hooks: PipelineHooks | None = None,
) -> RoadGraph:
    """
    Build the undirected road graph.

    `source` is either raw polylines, a SplitGeometry or a list of Segments.
    Duplicate vertex pairs keep the minimum-weight edge; segments whose endpoints
    merge into one vertex are dropped.
    """
    hooks = hooks or NoopHooks()
    geom = _coerce_geometry(source, at_midpoints=at_midpoints, hooks=hooks)
    if not geom.segments:
        raise EmptyNetwork()

    pts = np.array(
        [(p.x, p.y) for s in geom.segments for p in (s.start, s.end)],
        dtype=float,
    )
    vid, vertices = _merge_coincident(pts, tol)

    best: dict[tuple[int, int], float] = {}
    dropped = 0
    for s_idx, seg in enumerate(geom.segments):
        u, v = int(vid[2 * s_idx]), int(vid[2 * s_idx + 1])
        if u == v:
            dropped += 1
            continue
        key = (u, v) if u < v else (v, u)
        w = float(seg.length_m)
        if key not in best or w < best[key]:
            best[key] = w

    if not best:
        raise EmptyNetwork("all segments collapsed onto single vertices")

    keys = sorted(best)
    edges = np.array(keys, dtype=np.int64)
    weights = np.array([best[k] for k in keys], dtype=float)

    midpoint_ids = None
    if geom.at_midpoints:
        # half segments come in pairs (a, mid), (mid, b): the midpoint is the end of the first half
        midpoint_ids = np.unique(vid[2 * np.arange(0, len(geom.segments), 2) + 1])

    graph = RoadGraph.from_arrays(vertices, edges, weights, midpoint_ids=midpoint_ids)
    merged = len(pts) - graph.n_vertices
    n_comp = len(graph.components())
    log.debug(
        "graph built: %d vertices, %d edges, %d components",
        graph.n_vertices,
        graph.n_edges,
        n_comp,
    )
    hooks.graph_built(
        n_vertices=graph.n_vertices,
        n_edges=graph.n_edges,
        n_components=n_comp,
        merged=merged,
        dropped=dropped,
    )
    return graph
