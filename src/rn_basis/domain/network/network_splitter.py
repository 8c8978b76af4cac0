import logging
from collections.abc import Iterable, Sequence

from rn_basis.app.hooks import NoopHooks, PipelineHooks
from rn_basis.domain.entities.geography import Point, Segment, SplitGeometry
from rn_basis.domain.errors import MalformedGeometry

log = logging.getLogger(__name__)


def _to_point(p) -> Point:
    return p if isinstance(p, Point) else Point(float(p[0]), float(p[1]))


def split_polylines(
    polylines: Iterable[Sequence],
    *,
    at_midpoints: bool = False,
    hooks: PipelineHooks | None = None,
) -> SplitGeometry:
    """
    Decompose polylines into atomic segments.

    Each consecutive vertex pair becomes a Segment and contributes one midpoint.
    With at_midpoints=True every segment is emitted as its two halves, which makes
    the midpoints graph vertices downstream. Polylines with fewer than two points
    are reported and skipped.
    """
    hooks = hooks or NoopHooks()
    segments: list[Segment] = []
    midpoints: list[Point] = []
    skipped: list[int] = []

    for i, line in enumerate(polylines):
        pts = [_to_point(p) for p in line]
        if len(pts) < 2:
            diag = MalformedGeometry(index=i, n_points=len(pts))
            log.warning("skipping polyline %d with %d point(s)", i, len(pts))
            hooks.malformed(diag)
            skipped.append(i)
            continue
        for a, b in zip(pts[:-1], pts[1:]):
            if a == b:
                continue  # repeated vertex
            seg = Segment.between(a, b)
            mid = seg.midpoint
            midpoints.append(mid)
            if at_midpoints:
                segments.append(Segment.between(a, mid))
                segments.append(Segment.between(mid, b))
            else:
                segments.append(seg)

    return SplitGeometry(segments, midpoints, skipped, at_midpoints=at_midpoints)
