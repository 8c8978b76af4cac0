# rn_basis/app/build.py
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.config.models import BasisModel
from rn_basis.domain.entities.basis import KernelBasis, PathMatrices
from rn_basis.domain.entities.geography import RoadGraph, SplitGeometry
from rn_basis.domain.network.network_graph import build_graph
from rn_basis.domain.network.network_kernels import (
    VarianceProfile,
    evaluate_basis,
    variance_profile,
)
from rn_basis.domain.network.network_knots import KnotSelection, select_knots, target_count_for
from rn_basis.domain.network.network_paths import (
    compute_distances_and_weights,
    observation_adjacency,
)
from rn_basis.domain.network.network_snapper import VertexSnapper
from rn_basis.domain.network.network_splitter import split_polylines
from rn_basis.io.pipeline_logging import PipelineLogging
from rn_basis.runtime.registries import make_weighting


@dataclass(frozen=True)
class BasisResult:
    config: BasisModel
    geometry: SplitGeometry
    graph: RoadGraph
    data_nodes: np.ndarray  # (n,) snapped observation vertex ids
    knots: KnotSelection
    paths: PathMatrices
    basis: KernelBasis

    @property
    def K(self) -> np.ndarray:
        return self.basis.matrix

    def with_kernel(self, kind, bandwidth, *, use_weights: bool = True) -> KernelBasis:
        """Fresh basis from the stored D/W; paths are not recomputed."""
        return evaluate_basis(self.paths, kind, bandwidth, use_weights=use_weights)

    def variance(self) -> VarianceProfile:
        return variance_profile(self.basis.matrix)

    def adjacency(self, radius_m: float) -> np.ndarray:
        return observation_adjacency(self.graph, self.data_nodes, radius_m)


def build_basis(
    cfg: BasisModel | Mapping,
    polylines: Iterable[Sequence],
    points,
    *,
    use_logging: bool = True,
    hooks: PipelineHooks | None = None,
) -> BasisResult:
    # 0) Validate config
    model = cfg if isinstance(cfg, BasisModel) else BasisModel.model_validate(cfg)

    if hooks is None:
        hooks = (
            PipelineLogging(run_id=model.run_id, level=model.log.level, debug=model.log.debug)
            if use_logging
            else NoopHooks()
        )

    # 1) Geometry & graph
    link_snap = model.network.snap_to_links
    geometry = split_polylines(polylines, at_midpoints=link_snap, hooks=hooks)
    graph = build_graph(geometry, tol=model.network.coincidence_tol_m, hooks=hooks)

    # 2) Observations onto the network
    vertex_snapper = VertexSnapper(graph)
    obs_snapper = VertexSnapper(graph, subset=graph.midpoint_ids) if link_snap else vertex_snapper
    data_nodes = obs_snapper.nearest(points)
    data_nodes.setflags(write=False)

    # 3) Knots
    kcfg = model.knots
    target = kcfg.target_count or target_count_for(data_nodes.size, kcfg.density_factor)
    knots = select_knots(
        graph,
        kcfg.bbox,
        target,
        kcfg.k,
        data_nodes,
        snapper=vertex_snapper,
        tol=kcfg.hull_tol_m,
        hooks=hooks,
    )

    # 4) Paths
    paths = compute_distances_and_weights(
        graph,
        data_nodes,
        knots.knot_ids,
        weighting=make_weighting(model.paths.weighting),
        n_jobs=model.paths.n_jobs,
        budget_s=model.paths.budget_s,
        hooks=hooks,
    )

    # 5) Kernel
    basis = evaluate_basis(
        paths,
        model.kernel.kind,
        model.kernel.bandwidth_m,
        use_weights=model.kernel.use_weights,
        hooks=hooks,
    )

    return BasisResult(model, geometry, graph, data_nodes, knots, paths, basis)
