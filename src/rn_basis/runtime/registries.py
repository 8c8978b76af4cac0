# runtime/registries.py
from collections.abc import Callable

from rn_basis.app.protocols import KernelFn, PathWeighting
from rn_basis.config.models import (
    EqualSplitWeightingModel,
    HopDecayWeightingModel,
    UniformWeightingModel,
    WeightingUnion,
)
from rn_basis.domain.errors import UnsupportedKernel
from rn_basis.domain.network.network_weights import (
    EqualSplitWeighting,
    HopDecayWeighting,
    UniformWeighting,
)

WeightingFactory = Callable[[WeightingUnion], PathWeighting]

_weighting_registry: dict[str, WeightingFactory] = {}
_kernel_registry: dict[str, KernelFn] = {}


# ------------------- Path weighting registries ---------------------------


def register_weighting(kind: str):
    def deco(fn: WeightingFactory):
        _weighting_registry[kind] = fn
        return fn

    return deco


def make_weighting(cfg: WeightingUnion) -> PathWeighting:
    try:
        factory = _weighting_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown weighting kind {cfg.kind!r}") from None
    return factory(cfg)


@register_weighting("equal_split")
def _make_equal_split(cfg: EqualSplitWeightingModel):
    return EqualSplitWeighting()


@register_weighting("uniform")
def _make_uniform(cfg: UniformWeightingModel):
    return UniformWeighting()


@register_weighting("hop_decay")
def _make_hop_decay(cfg: HopDecayWeightingModel):
    return HopDecayWeighting(rate=cfg.rate)


# ------------------- Kernel profile registries ---------------------------


def register_kernel(kind: str):
    """Register a radial profile u -> K(u) under a case-insensitive name."""

    def deco(fn: KernelFn):
        _kernel_registry[kind.lower()] = fn
        return fn

    return deco


def make_kernel(kind: str) -> KernelFn:
    try:
        return _kernel_registry[kind]
    except KeyError:
        raise UnsupportedKernel(kind, known=list(_kernel_registry)) from None
