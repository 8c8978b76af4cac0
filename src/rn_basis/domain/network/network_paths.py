import heapq
import logging
import math
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait

import numpy as np

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.app.protocols import PathWeighting
from rn_basis.domain.entities.basis import PathMatrices
from rn_basis.domain.entities.geography import RoadGraph
from rn_basis.domain.errors import ComputationBudgetExceeded, DisconnectedPair
from rn_basis.domain.network.network_weights import EqualSplitWeighting

log = logging.getLogger(__name__)


def shortest_path_tree(graph: RoadGraph, source: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Single-source Dijkstra over the CSR adjacency.
    Returns dist[N] (inf if unreachable) and prev[N] (-1 for source/unreached).
    Equal-length alternatives keep the lower-index predecessor.
    """
    indptr, indices, weights = (a.tolist() for a in graph.csr())
    n = graph.n_vertices
    INF = math.inf
    dist = [INF] * n
    prev = [-1] * n
    done = [False] * n
    s = int(source)
    dist[s] = 0.0
    h = [(0.0, s)]
    while h:
        d_u, u = heapq.heappop(h)
        if done[u]:
            continue
        done[u] = True
        for e in range(indptr[u], indptr[u + 1]):
            v = indices[e]
            if done[v]:
                continue
            nd = d_u + weights[e]
            if nd < dist[v]:
                dist[v] = nd
                prev[v] = u
                heapq.heappush(h, (nd, v))
            elif nd == dist[v] and u < prev[v]:
                prev[v] = u
    return np.array(dist, dtype=float), np.array(prev, dtype=np.int64)


def backtrack(prev: np.ndarray, target: int) -> list[int]:
    """Vertex chain source → target following predecessor links."""
    path = []
    u = int(target)
    while u != -1:
        path.append(u)
        u = int(prev[u])
    path.reverse()
    return path


def path_length(graph: RoadGraph, path: Sequence[int]) -> float:
    return math.fsum(graph.edge_weight(u, v) for u, v in zip(path[:-1], path[1:]))


def _rows_for_source(graph, source, knots, weighting):
    dist, prev = shortest_path_tree(graph, source)
    m = len(knots)
    d_row = np.full(m, np.inf)
    w_row = np.full(m, np.nan)
    missing = []
    for j, k in enumerate(knots):
        if not np.isfinite(dist[k]):
            missing.append(int(k))
            continue
        path = backtrack(prev, k)
        d_row[j] = path_length(graph, path)
        w_row[j] = weighting.weight(path, graph)
    return d_row, w_row, missing


# per-process search context, set once by the pool initializer
_worker_ctx = None


def _init_worker(graph, knots, weighting):
    global _worker_ctx
    _worker_ctx = (graph, knots, weighting)


def _worker_rows(source):
    graph, knots, weighting = _worker_ctx
    return _rows_for_source(graph, source, knots, weighting)


def compute_distances_and_weights(
    graph: RoadGraph,
    observation_indices: Sequence[int],
    knot_indices: Sequence[int],
    *,
    weighting: PathWeighting | None = None,
    n_jobs: int = 1,
    budget_s: float | None = None,
    hooks: PipelineHooks | None = None,
) -> PathMatrices:
    """
    Shortest-path distances D and path weights W for every (observation, knot) pair.

    One search runs per distinct observation vertex; rows of observations sharing
    a vertex are copies. Unreachable pairs get D = inf and W = nan.

    The search is pure Python, so n_jobs > 1 fans sources out to worker processes;
    the graph and weighting are pickled once per worker.
    """
    hooks = hooks or NoopHooks()
    weighting = weighting or EqualSplitWeighting()
    obs = np.array(observation_indices, dtype=np.int64).reshape(-1)
    knots = np.array(knot_indices, dtype=np.int64).reshape(-1)
    for name, ids in (("observation", obs), ("knot", knots)):
        if ids.size and (ids.min() < 0 or ids.max() >= graph.n_vertices):
            raise IndexError(f"{name} vertex id out of range [0, {graph.n_vertices})")

    sources, inverse = np.unique(obs, return_inverse=True)
    inverse = inverse.reshape(-1)
    D_src = np.full((sources.size, knots.size), np.inf)
    W_src = np.full((sources.size, knots.size), np.nan)
    disconnected: list[DisconnectedPair] = []

    t0 = time.perf_counter()

    def _check_budget(done: int):
        if budget_s is not None and time.perf_counter() - t0 > budget_s:
            err = ComputationBudgetExceeded(budget_s, done, int(sources.size))
            hooks.error(stage="paths", exc=err)
            raise err

    def _store(i, result):
        d_row, w_row, missing = result
        D_src[i], W_src[i] = d_row, w_row
        disconnected.extend(DisconnectedPair(int(sources[i]), k) for k in missing)

    workers = max(1, int(n_jobs))
    if workers == 1 or sources.size <= 1:
        for i, s in enumerate(sources):
            _store(i, _rows_for_source(graph, s, knots, weighting))
            _check_budget(i + 1)
    else:
        with ProcessPoolExecutor(
            max_workers=workers, initializer=_init_worker, initargs=(graph, knots, weighting)
        ) as pool:
            pending = {pool.submit(_worker_rows, int(s)): i for i, s in enumerate(sources)}
            done = 0
            while pending:
                left = None if budget_s is None else max(0.0, budget_s - (time.perf_counter() - t0))
                finished, _ = wait(pending, timeout=left, return_when=FIRST_COMPLETED)
                for fut in finished:
                    _store(pending.pop(fut), fut.result())
                    done += 1
                try:
                    _check_budget(done)
                except ComputationBudgetExceeded:
                    for fut in pending:
                        fut.cancel()
                    raise

    wall_ms = (time.perf_counter() - t0) * 1000
    hooks.paths_done(
        n_sources=int(sources.size), n_targets=int(knots.size), n_jobs=workers, wall_ms=wall_ms
    )
    if disconnected:
        disconnected.sort(key=lambda p: (p.source, p.target))
        log.info("%d observation/knot pairs are disconnected", len(disconnected))
        hooks.disconnected(disconnected)

    D, W = D_src[inverse], W_src[inverse]
    for a in (D, W, obs, knots):
        a.setflags(write=False)
    return PathMatrices(distances=D, weights=W, observation_ids=obs, knot_ids=knots)


def observation_adjacency(
    graph: RoadGraph, vertex_ids: Sequence[int], radius_m: float
) -> np.ndarray:
    """
    Symmetric 0/1 neighbour matrix between observations whose vertices are within
    `radius_m` path distance of each other. The diagonal is zero.
    """
    if radius_m < 0:
        raise ValueError(f"radius_m must be >= 0, got {radius_m}")
    ids = np.asarray(vertex_ids, dtype=np.int64).reshape(-1)
    sources, inverse = np.unique(ids, return_inverse=True)
    inverse = inverse.reshape(-1)
    near = np.zeros((sources.size, sources.size), dtype=bool)
    for i, s in enumerate(sources):
        dist, _ = shortest_path_tree(graph, s)
        near[i] = dist[sources] <= radius_m
    A = near[np.ix_(inverse, inverse)].astype(np.int8)
    np.fill_diagonal(A, 0)
    return A
