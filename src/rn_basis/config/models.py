from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


class NetworkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    coincidence_tol_m: float = 1e-6
    snap_to_links: bool = False  # split segments at midpoints, snap observations to those

    @field_validator("coincidence_tol_m")
    @classmethod
    def _nonneg(cls, v: float) -> float:
        if v < 0 or not isfinite(v):
            raise ValueError("coincidence_tol_m must be a finite value >= 0")
        return v


class KnotModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    target_count: int | None = Field(default=None, ge=1)  # grid size mx; None => derived
    density_factor: float = Field(default=1.5, gt=0)  # mx = ceil(factor * n_observations)
    k: int = Field(default=1, ge=1)
    hull_tol_m: float = Field(default=1e-6, ge=0)
    bbox: tuple[float, float, float, float] | None = None

    @field_validator("bbox")
    @classmethod
    def _ordered(cls, v):
        if v is None:
            return v
        x0, y0, x1, y1 = v
        if x1 < x0 or y1 < y0:
            raise ValueError("bbox must be (xmin, ymin, xmax, ymax)")
        return v


# ----------------- PATH WEIGHTING ---------------------


class EqualSplitWeightingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["equal_split"] = "equal_split"


class UniformWeightingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["uniform"] = "uniform"


class HopDecayWeightingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["hop_decay"] = "hop_decay"
    rate: float = Field(default=0.1, ge=0)


WeightingUnion = Annotated[
    EqualSplitWeightingModel | UniformWeightingModel | HopDecayWeightingModel,
    Field(discriminator="kind"),
]


class PathsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    weighting: WeightingUnion = Field(default_factory=EqualSplitWeightingModel)
    n_jobs: int = Field(default=1, ge=1)
    budget_s: float | None = None

    @field_validator("budget_s")
    def _positive(cls, v: float | None, info: ValidationInfo) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


# ----------------- KERNEL ---------------------


class KernelModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["gaussian", "exponential", "epanechnikov"] = "gaussian"
    bandwidth_m: float
    use_weights: bool = True

    @field_validator("bandwidth_m")
    @classmethod
    def _bandwidth(cls, v: float) -> float:
        if not isfinite(v) or v <= 0:
            raise ValueError("bandwidth_m must be a finite value > 0")
        return v


# ------------------------------------------------------------------


class BasisModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "network_basis"
    run_id: str = "local"
    log: LogModel = LogModel()
    network: NetworkModel = Field(default_factory=NetworkModel)
    knots: KnotModel = Field(default_factory=KnotModel)
    paths: PathsModel = Field(default_factory=PathsModel)
    kernel: KernelModel

    @model_validator(mode="after")
    def _hull_tol_default(self):
        # hull test should not be stricter than vertex merging
        if self.knots.hull_tol_m < self.network.coincidence_tol_m:
            # copy: the KnotModel may be a caller-owned instance
            self.knots = self.knots.model_copy(
                update={"hull_tol_m": self.network.coincidence_tol_m}
            )
        return self
