import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.domain.entities.basis import KernelBasis, PathMatrices
from rn_basis.domain.errors import InvalidBandwidth
from rn_basis.runtime.registries import make_kernel, register_kernel

log = logging.getLogger(__name__)


class KernelKind(Enum):
    GAUSSIAN = "gaussian"
    EXPONENTIAL = "exponential"
    EPANECHNIKOV = "epanechnikov"


@register_kernel(KernelKind.GAUSSIAN.value)
def _gaussian(u):
    return np.exp(-0.5 * u * u)


@register_kernel(KernelKind.EXPONENTIAL.value)
def _exponential(u):
    return np.exp(-u)


@register_kernel(KernelKind.EPANECHNIKOV.value)
def _epanechnikov(u):
    return np.clip(1.0 - u * u, 0.0, None)


def resolve_kind(kernel_type):
    """Registered name and profile for a KernelKind or a (case-insensitive) name."""
    name = kernel_type.value if isinstance(kernel_type, KernelKind) else str(kernel_type).lower()
    return name, make_kernel(name)


def check_bandwidth(bandwidth) -> float:
    try:
        h = float(bandwidth)
    except (TypeError, ValueError):
        raise InvalidBandwidth(bandwidth) from None
    if not math.isfinite(h) or h <= 0:
        raise InvalidBandwidth(bandwidth)
    return h


def evaluate_kernel(kernel_type, bandwidth, D, W=None) -> np.ndarray:
    """
    K = profile(D / h) * W.

    Infinite distances (disconnected pairs) map to 0, as does an undefined (nan)
    weight. W defaults to 1. Scalars are accepted and give a 0-d array.
    """
    _, profile = resolve_kind(kernel_type)
    h = check_bandwidth(bandwidth)

    D = np.asarray(D, dtype=float)
    if np.any(D < 0):
        raise ValueError("distances must be non-negative")
    W = np.ones_like(D) if W is None else np.broadcast_to(np.asarray(W, dtype=float), D.shape)

    reachable = np.isfinite(D) & ~np.isnan(W)
    K = np.zeros(D.shape, dtype=float)
    K[reachable] = profile(D[reachable] / h) * W[reachable]
    K.setflags(write=False)
    return K


def evaluate_basis(
    paths: PathMatrices,
    kernel_type,
    bandwidth,
    *,
    use_weights: bool = True,
    hooks: PipelineHooks | None = None,
) -> KernelBasis:
    hooks = hooks or NoopHooks()
    kind, _ = resolve_kind(kernel_type)
    h = check_bandwidth(bandwidth)
    K = evaluate_kernel(kind, h, paths.distances, paths.weights if use_weights else None)
    nonzero = int(np.count_nonzero(K))
    log.debug("kernel %s h=%.3f shape=%s nonzero=%d", kind, h, K.shape, nonzero)
    hooks.kernel_evaluated(kind=kind, bandwidth=h, shape=K.shape, nonzero=nonzero)
    return KernelBasis(kind=kind, bandwidth=h, matrix=K)


@dataclass(frozen=True)
class VarianceProfile:
    row_variance: np.ndarray  # sum_j K_ij^2 per observation
    mean: float
    cv: float  # coefficient of variation across observations


def variance_profile(K) -> VarianceProfile:
    """Implied marginal variance per row of a basis with iid unit-variance weights."""
    K = np.asarray(K, dtype=float)
    if K.ndim != 2:
        raise ValueError(f"expected a 2-d basis matrix, got shape {K.shape}")
    rv = np.square(K).sum(axis=1)
    mean = float(rv.mean()) if rv.size else 0.0
    cv = float(rv.std() / mean) if mean > 0 else 0.0
    return VarianceProfile(row_variance=rv, mean=mean, cv=cv)
