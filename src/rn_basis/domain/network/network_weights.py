import math
from collections.abc import Sequence

from rn_basis.app.protocols import PathWeighting
from rn_basis.domain.entities.geography import RoadGraph


class EqualSplitWeighting(PathWeighting):
    """
    Split kernel mass evenly at every junction the path passes through:
    each interior vertex v contributes 1 / (deg(v) - 1). Degree-2 vertices
    (polyline bends) leave the weight unchanged.
    """

    def weight(self, path: Sequence[int], graph: RoadGraph) -> float:
        w = 1.0
        deg = graph.degrees
        for v in path[1:-1]:
            w /= max(int(deg[v]) - 1, 1)
        return w


class UniformWeighting(PathWeighting):
    def weight(self, path, graph):
        return 1.0


class HopDecayWeighting(PathWeighting):
    def __init__(self, rate: float = 0.0):
        if rate < 0:
            raise ValueError(f"rate must be >= 0, got {rate}")
        self.rate = rate

    def weight(self, path, graph):
        hops = max(len(path) - 1, 0)
        return math.exp(-self.rate * max(hops - 1, 0))
