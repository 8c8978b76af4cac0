# app/hooks.py
from typing import Protocol

from rn_basis.domain.errors import DisconnectedPair, MalformedGeometry


class PipelineHooks(Protocol):
    def malformed(self, diag: MalformedGeometry): ...
    def graph_built(self, *, n_vertices, n_edges, n_components, merged, dropped): ...
    def knots_selected(self, *, n_candidates, n_knots, n_observations): ...
    def knot_rank_warning(self, *, n_knots, n_observations): ...
    def paths_done(self, *, n_sources, n_targets, n_jobs, wall_ms): ...
    def disconnected(self, pairs: list[DisconnectedPair]): ...
    def kernel_evaluated(self, *, kind, bandwidth, shape, nonzero): ...
    def error(self, *, stage: str, exc: BaseException, **kw): ...


class NoopHooks:
    def malformed(self, *_, **__):
        pass

    def graph_built(self, **_):
        pass

    def knots_selected(self, **_):
        pass

    def knot_rank_warning(self, **_):
        pass

    def paths_done(self, **_):
        pass

    def disconnected(self, *_, **__):
        pass

    def kernel_evaluated(self, **_):
        pass

    def error(self, **_):
        pass
