# io/pipeline_logging.py
import json
import logging
import sys
from dataclasses import asdict

from rn_basis.app.hooks import NoopHooks


def _default_json_logger(name="rn_basis", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class PipelineLogging(NoopHooks):
    """
    One place to shape and emit structured logs for every pipeline stage.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        max_pairs: int = 20,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug, self.max_pairs = run_id, debug, max(0, max_pairs)
        self.log = logger or _default_json_logger(level=level)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    # --------------------------------------------------------

    def malformed(self, diag):
        self._emit("WARNING", "polyline_skipped", **asdict(diag))

    def graph_built(self, *, n_vertices, n_edges, n_components, merged, dropped):
        self._emit(
            "INFO",
            "graph_built",
            n_vertices=n_vertices,
            n_edges=n_edges,
            n_components=n_components,
            merged=merged,
            dropped=dropped,
        )
        if n_components > 1:
            self._emit("WARNING", "graph_disconnected", n_components=n_components)

    def knots_selected(self, *, n_candidates, n_knots, n_observations):
        self._emit(
            "INFO",
            "knots_selected",
            n_candidates=n_candidates,
            n_knots=n_knots,
            n_observations=n_observations,
        )

    def knot_rank_warning(self, *, n_knots, n_observations):
        self._emit("WARNING", "knot_rank_warning", n_knots=n_knots, n_observations=n_observations)

    def paths_done(self, *, n_sources, n_targets, n_jobs, wall_ms):
        self._emit(
            "INFO",
            "paths_done",
            n_sources=n_sources,
            n_targets=n_targets,
            n_jobs=n_jobs,
            wall_ms=round(wall_ms, 3),
        )

    def disconnected(self, pairs):
        extra = {"count": len(pairs)}
        if self.debug:
            extra["pairs"] = [asdict(p) for p in pairs[: self.max_pairs]]
        self._emit("WARNING", "disconnected_pairs", **extra)

    def kernel_evaluated(self, *, kind, bandwidth, shape, nonzero):
        self._emit(
            "INFO",
            "kernel_evaluated",
            kind=kind,
            bandwidth=bandwidth,
            shape=list(shape),
            nonzero=nonzero,
        )

    def error(self, *, stage: str, exc: BaseException, **extra):
        self._emit("ERROR", "pipeline_error", stage=stage, error=str(exc), **extra)
