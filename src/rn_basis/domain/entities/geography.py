import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import networkx as nx
import numpy as np
from scipy.sparse import csr_array


# Core geometry types used by the network pipeline
@dataclass(frozen=True)
class Point:
    x: float  # meters in projected CRS
    y: float

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    length_m: float

    @classmethod
    def between(cls, a: Point, b: Point) -> "Segment":
        return cls(a, b, math.hypot(b.x - a.x, b.y - a.y))

    @property
    def midpoint(self) -> Point:
        return Point(0.5 * (self.start.x + self.end.x), 0.5 * (self.start.y + self.end.y))


@dataclass(frozen=True)
class SplitGeometry:
    segments: list[Segment]
    midpoints: list[Point]
    skipped: list[int] = field(default_factory=list)  # input positions of malformed polylines
    at_midpoints: bool = False

    def __len__(self) -> int:
        return len(self.segments)


def as_xy(points) -> np.ndarray:
    """Coerce Points, (x, y) pairs or an (n, 2) array into a float (n, 2) array."""
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=float)
    else:
        arr = np.array([(float(x), float(y)) for x, y in points], dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.shape[1] != 2:
        raise ValueError(f"expected planar (x, y) coordinates, got shape {arr.shape}")
    return arr


def _frozen(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class RoadGraph:
    """
    Immutable undirected road graph.

    vertices:  (N, 2) planar coordinates, index = vertex id
    edges:     (E, 2) vertex pairs with u < v, sorted
    weights:   (E,)   Euclidean edge lengths in meters (> 0)
    degrees:   (N,)   distinct neighbours per vertex
    """

    vertices: np.ndarray
    edges: np.ndarray
    weights: np.ndarray
    degrees: np.ndarray
    nx_graph: nx.Graph
    adjacency: csr_array
    midpoint_ids: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))

    @classmethod
    def from_arrays(
        cls,
        vertices: np.ndarray,
        edges: np.ndarray,
        weights: np.ndarray,
        *,
        midpoint_ids: Sequence[int] | None = None,
    ) -> "RoadGraph":
        vertices = np.array(vertices, dtype=float).reshape(-1, 2)
        edges = np.array(edges, dtype=np.int64).reshape(-1, 2)
        weights = np.array(weights, dtype=float).reshape(-1)
        n = vertices.shape[0]

        G = nx.Graph()
        G.add_nodes_from(range(n))
        for (u, v), w in zip(edges.tolist(), weights.tolist()):
            G.add_edge(u, v, weight=w)

        degrees = np.array([G.degree(i) for i in range(n)], dtype=np.int64)

        # symmetric CSR with column indices sorted per row
        rows = np.concatenate([edges[:, 0], edges[:, 1]])
        cols = np.concatenate([edges[:, 1], edges[:, 0]])
        data = np.concatenate([weights, weights])
        adj = csr_array((data, (rows, cols)), shape=(n, n))
        adj.sort_indices()

        mids = np.array(midpoint_ids if midpoint_ids is not None else [], dtype=np.int64)
        return cls(
            vertices=_frozen(vertices),
            edges=_frozen(edges),
            weights=_frozen(weights),
            degrees=_frozen(degrees),
            nx_graph=nx.freeze(G),
            adjacency=adj,
            midpoint_ids=_frozen(mids),
        )

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_edges(self) -> int:
        return int(self.edges.shape[0])

    def node_point(self, i: int) -> Point:
        x, y = self.vertices[int(i)]
        return Point(float(x), float(y))

    def edge_weight(self, u: int, v: int) -> float:
        return float(self.nx_graph[int(u)][int(v)]["weight"])

    def bbox(self) -> tuple[float, float, float, float]:
        x0, y0 = self.vertices.min(axis=0)
        x1, y1 = self.vertices.max(axis=0)
        return float(x0), float(y0), float(x1), float(y1)

    def csr(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.adjacency.indptr, self.adjacency.indices, self.adjacency.data

    def components(self) -> list[list[int]]:
        return sorted(
            (sorted(c) for c in nx.connected_components(self.nx_graph)),
            key=lambda c: c[0],
        )
