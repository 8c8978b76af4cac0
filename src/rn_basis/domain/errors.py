# rn_basis/domain/errors.py
from dataclasses import dataclass


class RoadNetworkError(Exception):
    """Base class for fatal pipeline errors."""


class EmptyNetwork(RoadNetworkError):
    def __init__(self, msg: str = "no segments to build a graph from"):
        super().__init__(msg)


class InvalidBandwidth(RoadNetworkError, ValueError):
    def __init__(self, bandwidth):
        self.bandwidth = bandwidth
        super().__init__(f"bandwidth must be a finite value > 0, got {bandwidth!r}")


class UnsupportedKernel(RoadNetworkError, ValueError):
    def __init__(self, kind, known=()):
        self.kind = kind
        hint = f"; expected one of {sorted(known)}" if known else ""
        super().__init__(f"Unknown kernel kind {kind!r}{hint}")


class DegenerateKnotSet(RoadNetworkError):
    def __init__(self, n_candidates: int):
        self.n_candidates = n_candidates
        super().__init__(
            f"knot selection produced no knots inside the observation hull "
            f"({n_candidates} candidates before hull filtering)"
        )


class ComputationBudgetExceeded(RoadNetworkError):
    def __init__(self, budget_s: float, done: int, total: int):
        self.budget_s, self.done, self.total = budget_s, done, total
        super().__init__(
            f"path search exceeded budget of {budget_s:.3f}s after {done}/{total} sources"
        )


# ---- in-band diagnostics (reported, never raised)


@dataclass(frozen=True)
class MalformedGeometry:
    index: int  # position in the input polyline sequence
    n_points: int


@dataclass(frozen=True)
class DisconnectedPair:
    source: int  # observation vertex id
    target: int  # knot vertex id
