# tests/conftest.py
import pytest

from rn_basis.app.hooks import NoopHooks
from rn_basis.domain.network.network_graph import build_graph


def lattice(n: int = 4, step: float = 100.0):
    """n x n street grid; vertex id = n * row + col once built."""
    coords = [i * step for i in range(n)]
    rows = [[(x, y) for x in coords] for y in coords]
    cols = [[(x, y) for y in coords] for x in coords]
    return rows + cols


class TraceHooks(NoopHooks):
    """Records which pipeline stages reported, in order."""

    def __init__(self):
        self.trace = []
        self.malformed_diags = []
        self.disconnected_pairs = []
        self.errors = []
        self.graph_info = {}

    def malformed(self, diag):
        self.trace.append("malformed")
        self.malformed_diags.append(diag)

    def graph_built(self, **kw):
        self.trace.append("graph_built")
        self.graph_info = kw

    def knots_selected(self, **kw):
        self.trace.append("knots_selected")

    def knot_rank_warning(self, **kw):
        self.trace.append("knot_rank_warning")

    def paths_done(self, **kw):
        self.trace.append("paths_done")

    def disconnected(self, pairs):
        self.trace.append("disconnected")
        self.disconnected_pairs.extend(pairs)

    def kernel_evaluated(self, **kw):
        self.trace.append("kernel_evaluated")

    def error(self, *, stage, exc, **kw):
        self.trace.append("error")
        self.errors.append((stage, exc))


@pytest.fixture
def trace_hooks() -> TraceHooks:
    return TraceHooks()


@pytest.fixture
def lattice_polylines():
    return lattice()


@pytest.fixture
def lattice_graph(lattice_polylines):
    return build_graph(lattice_polylines)


@pytest.fixture
def make_lattice():
    return lattice
