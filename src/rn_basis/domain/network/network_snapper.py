from collections.abc import Sequence

import numpy as np
from scipy.spatial import cKDTree

from rn_basis.domain.entities.geography import RoadGraph, as_xy

# relative slack when collecting equidistant neighbours for tie-breaking
_TIE_RTOL = 1e-12


class VertexSnapper:
    """
    Nearest-vertex index over a RoadGraph.

    The k-d tree is built once and queried many times. `subset` restricts the
    searchable vertices (e.g. link midpoints); returned ids are always graph ids.
    Equidistant vertices are ordered by lowest vertex id.
    """

    def __init__(self, graph: RoadGraph, *, subset: Sequence[int] | None = None):
        self.graph = graph
        if subset is None:
            self.ids = np.arange(graph.n_vertices, dtype=np.int64)
        else:
            self.ids = np.unique(np.asarray(subset, dtype=np.int64))
            if self.ids.size == 0:
                raise ValueError("snapper subset is empty")
        self.ids.setflags(write=False)
        self.coords = graph.vertices[self.ids]
        self.tree = cKDTree(self.coords)

    def __len__(self) -> int:
        return int(self.ids.size)

    def snap(self, points, k: int = 1) -> np.ndarray:
        """Return (q, min(k, n)) graph vertex ids, nearest first."""
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        q = as_xy(points)
        k_eff = min(int(k), len(self))
        out = np.empty((q.shape[0], k_eff), dtype=np.int64)
        if q.shape[0] == 0:
            return out

        d, _ = self.tree.query(q, k=k_eff)
        d = np.asarray(d, dtype=float).reshape(q.shape[0], k_eff)
        radius = d[:, -1] * (1.0 + _TIE_RTOL) + _TIE_RTOL
        candidates = self.tree.query_ball_point(q, radius)

        for row, (p, cand) in enumerate(zip(q, candidates)):
            cand = np.asarray(cand, dtype=np.int64)
            dist = np.hypot(self.coords[cand, 0] - p[0], self.coords[cand, 1] - p[1])
            gid = self.ids[cand]
            order = np.lexsort((gid, dist))[:k_eff]
            out[row] = gid[order]
        return out

    def nearest(self, points) -> np.ndarray:
        return self.snap(points, k=1)[:, 0]

    def distance_to(self, points) -> np.ndarray:
        """Euclidean distance from each point to its snapped vertex."""
        q = as_xy(points)
        v = self.graph.vertices[self.nearest(q)]
        return np.hypot(v[:, 0] - q[:, 0], v[:, 1] - q[:, 1])


def snap(graph: RoadGraph, points, k: int = 1) -> np.ndarray:
    return VertexSnapper(graph).snap(points, k)
