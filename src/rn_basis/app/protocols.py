from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from rn_basis.domain.entities.geography import RoadGraph


# ------------- Network basis --------------------
@runtime_checkable
class PathWeighting(Protocol):
    """
    Responsibilities:
    • Map one realised shortest path (source → target vertex chain) to a weight.
    • Depend only on that path and the immutable graph.
    Contract: an empty or single-edge path weighs 1; weights lie in (0, 1].
    """

    def weight(self, path: Sequence[int], graph: RoadGraph) -> float: ...


@runtime_checkable
class KernelFn(Protocol):
    """
    Radial profile of normalised distance u = D / h.
    Must equal 1 at u = 0, be non-increasing in u and vanish as u → inf.
    """

    def __call__(self, u: np.ndarray) -> np.ndarray: ...
