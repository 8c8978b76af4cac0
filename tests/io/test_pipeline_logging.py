# tests/io/test_pipeline_logging.py
import json
import logging

import pytest

from rn_basis.domain.errors import DegenerateKnotSet, DisconnectedPair, MalformedGeometry
from rn_basis.io.pipeline_logging import PipelineLogging, _default_json_logger


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    logger = logging.getLogger("rn_basis.test_capture")
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    handler = _Capture()
    logger.addHandler(handler)
    yield logger, handler
    logger.removeHandler(handler)


def test_events_carry_run_id(captured):
    logger, handler = captured
    hooks = PipelineLogging(run_id="r-7", logger=logger)
    hooks.graph_built(n_vertices=16, n_edges=24, n_components=1, merged=32, dropped=0)
    hooks.kernel_evaluated(kind="gaussian", bandwidth=150.0, shape=(6, 4), nonzero=24)

    assert [r.msg for r in handler.records] == ["graph_built", "kernel_evaluated"]
    assert handler.records[0].extra == {
        "run_id": "r-7",
        "n_vertices": 16,
        "n_edges": 24,
        "n_components": 1,
        "merged": 32,
        "dropped": 0,
    }
    assert handler.records[1].extra["shape"] == [6, 4]


def test_disconnected_graph_adds_warning(captured):
    logger, handler = captured
    PipelineLogging(logger=logger).graph_built(
        n_vertices=4, n_edges=2, n_components=2, merged=0, dropped=0
    )
    assert [r.msg for r in handler.records] == ["graph_built", "graph_disconnected"]
    assert handler.records[1].levelno == logging.WARNING


def test_pair_listing_only_in_debug(captured):
    logger, handler = captured
    pairs = [DisconnectedPair(0, k) for k in range(5)]
    PipelineLogging(logger=logger).disconnected(pairs)
    PipelineLogging(logger=logger, debug=True, max_pairs=2).disconnected(pairs)

    quiet, loud = handler.records
    assert quiet.extra["count"] == 5 and "pairs" not in quiet.extra
    assert loud.extra["pairs"] == [{"source": 0, "target": 0}, {"source": 0, "target": 1}]


def test_malformed_and_error_events(captured):
    logger, handler = captured
    hooks = PipelineLogging(logger=logger)
    hooks.malformed(MalformedGeometry(index=3, n_points=1))
    hooks.error(stage="knots", exc=DegenerateKnotSet(4))

    skipped, failed = handler.records
    assert skipped.msg == "polyline_skipped" and skipped.extra["index"] == 3
    assert failed.levelno == logging.ERROR
    assert failed.extra["stage"] == "knots" and "4 candidates" in failed.extra["error"]


def test_json_formatter_output_parses():
    logger = _default_json_logger(name="rn_basis.test_json", level="DEBUG")
    record = logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, "paths_done", None, None,
        extra={"extra": {"run_id": "x", "wall_ms": 1.5}},
    )
    line = logger.handlers[0].format(record)
    assert json.loads(line) == {
        "level": "INFO",
        "msg": "paths_done",
        "logger": "rn_basis.test_json",
        "run_id": "x",
        "wall_ms": 1.5,
    }
