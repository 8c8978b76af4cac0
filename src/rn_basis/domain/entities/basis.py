from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PathMatrices:
    distances: np.ndarray  # (n, m) path lengths in meters, inf if unreachable
    weights: np.ndarray  # (n, m) path-structure weights, nan if unreachable
    observation_ids: np.ndarray  # (n,) graph vertex per row
    knot_ids: np.ndarray  # (m,) graph vertex per column

    @property
    def shape(self) -> tuple[int, int]:
        return self.distances.shape

    @property
    def disconnected(self) -> np.ndarray:
        return ~np.isfinite(self.distances)


@dataclass(frozen=True)
class KernelBasis:
    kind: str
    bandwidth: float
    matrix: np.ndarray  # (n, m) design matrix, entries in [0, 1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape
