"""
Public entry points for the road-network kernel basis.

    graph = build_graph(polylines)
    data_nodes = snap(graph, crash_xy)[:, 0]
    knots = select_knots(graph, None, 150, 1, data_nodes).knot_ids
    pm = compute_distances_and_weights(graph, data_nodes, knots)
    K = evaluate_kernel("gaussian", 1500.0, pm.distances, pm.weights)
"""

from rn_basis.app.build import BasisResult, build_basis
from rn_basis.config.models import BasisModel
from rn_basis.domain.entities.basis import KernelBasis, PathMatrices
from rn_basis.domain.entities.geography import Point, RoadGraph, Segment, SplitGeometry
from rn_basis.domain.errors import (
    ComputationBudgetExceeded,
    DegenerateKnotSet,
    DisconnectedPair,
    EmptyNetwork,
    InvalidBandwidth,
    MalformedGeometry,
    RoadNetworkError,
    UnsupportedKernel,
)
from rn_basis.domain.network.network_graph import build_graph
from rn_basis.domain.network.network_kernels import KernelKind, evaluate_kernel, variance_profile
from rn_basis.domain.network.network_knots import KnotSelection, select_knots
from rn_basis.domain.network.network_paths import (
    compute_distances_and_weights,
    observation_adjacency,
)
from rn_basis.domain.network.network_snapper import VertexSnapper, snap
from rn_basis.domain.network.network_splitter import split_polylines

__all__ = [
    "BasisModel",
    "BasisResult",
    "ComputationBudgetExceeded",
    "DegenerateKnotSet",
    "DisconnectedPair",
    "EmptyNetwork",
    "InvalidBandwidth",
    "KernelBasis",
    "KernelKind",
    "KnotSelection",
    "MalformedGeometry",
    "PathMatrices",
    "Point",
    "RoadGraph",
    "RoadNetworkError",
    "Segment",
    "SplitGeometry",
    "UnsupportedKernel",
    "VertexSnapper",
    "build_basis",
    "build_graph",
    "compute_distances_and_weights",
    "evaluate_kernel",
    "observation_adjacency",
    "select_knots",
    "snap",
    "split_polylines",
    "variance_profile",
]
