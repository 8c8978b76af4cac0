import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import shapely
from shapely.geometry import MultiPoint
from shapely.geometry.base import BaseGeometry

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.domain.entities.geography import RoadGraph
from rn_basis.domain.errors import DegenerateKnotSet
from rn_basis.domain.network.network_snapper import VertexSnapper

log = logging.getLogger(__name__)

HULL_TOL_M = 1e-6

BBox = tuple[float, float, float, float]


@dataclass(frozen=True)
class KnotSelection:
    knot_ids: np.ndarray  # sorted, deduplicated graph vertex ids
    candidate_ids: np.ndarray  # snapped grid vertices before hull filtering
    hull: BaseGeometry
    n_observations: int

    @property
    def m(self) -> int:
        return int(self.knot_ids.size)

    @property
    def rank_ok(self) -> bool:
        return self.m < self.n_observations


def target_count_for(n_observations: int, density_factor: float = 1.5) -> int:
    return max(1, int(math.ceil(density_factor * n_observations)))


def grid_side(target_count: int) -> int:
    """
    Points per axis for a grid of at least `target_count` points.

    Sides come from 1, 2, 3, 5, 9, 17, ... (2^j + 1), so every denser grid over
    the same bbox contains all points of a coarser one.
    """
    if target_count < 1:
        raise ValueError(f"target_count must be >= 1, got {target_count}")
    need = int(math.ceil(math.sqrt(target_count)))
    if need == 1:
        return 1
    side = 2
    while side < need:
        side = 2 * side - 1
    return side


def grid_points(bbox: BBox, target_count: int) -> np.ndarray:
    """Regular side x side grid spanning bbox, row-major; see grid_side."""
    side = grid_side(target_count)
    x0, y0, x1, y1 = bbox
    xs = np.linspace(x0, x1, side)
    ys = np.linspace(y0, y1, side)
    gx, gy = np.meshgrid(xs, ys)
    return np.column_stack([gx.ravel(), gy.ravel()])


def candidate_knots(
    graph: RoadGraph,
    bbox: BBox | None,
    target_count: int,
    k: int = 1,
    *,
    snapper: VertexSnapper | None = None,
) -> np.ndarray:
    snapper = snapper or VertexSnapper(graph)
    grid = grid_points(bbox or graph.bbox(), target_count)
    return np.unique(snapper.snap(grid, k=k))


def observation_hull(graph: RoadGraph, observation_indices: Sequence[int]) -> BaseGeometry:
    ids = np.unique(np.asarray(observation_indices, dtype=np.int64))
    if ids.size == 0:
        raise ValueError("no observation vertices to build a hull from")
    # collinear observations yield a LineString, a single one a Point
    return MultiPoint([tuple(xy) for xy in graph.vertices[ids]]).convex_hull


def select_knots(
    graph: RoadGraph,
    bbox: BBox | None,
    target_count: int,
    k: int,
    observation_indices: Sequence[int],
    *,
    snapper: VertexSnapper | None = None,
    tol: float = HULL_TOL_M,
    hooks: PipelineHooks | None = None,
) -> KnotSelection:
    """
    Snap a regular grid over `bbox` onto the graph and keep the snapped vertices
    lying inside or on the convex hull of the observation vertices.

    Only the snapped vertex coordinates enter the hull test; where a grid point
    sat before snapping is irrelevant.
    """
    hooks = hooks or NoopHooks()
    obs = np.asarray(observation_indices, dtype=np.int64)
    candidates = candidate_knots(graph, bbox, target_count, k, snapper=snapper)
    hull = observation_hull(graph, obs)

    pts = shapely.points(graph.vertices[candidates])
    inside = shapely.distance(hull, pts) <= tol
    knot_ids = candidates[inside]
    knot_ids.setflags(write=False)
    candidates.setflags(write=False)

    sel = KnotSelection(
        knot_ids=knot_ids,
        candidate_ids=candidates,
        hull=hull,
        n_observations=int(obs.size),
    )
    hooks.knots_selected(
        n_candidates=int(candidates.size), n_knots=sel.m, n_observations=sel.n_observations
    )
    if sel.m == 0:
        err = DegenerateKnotSet(int(candidates.size))
        hooks.error(stage="knots", exc=err)
        raise err
    if not sel.rank_ok:
        log.warning(
            "knot count %d is not below observation count %d; basis may be over-parameterised",
            sel.m,
            sel.n_observations,
        )
        hooks.knot_rank_warning(n_knots=sel.m, n_observations=sel.n_observations)
    return sel
