"""Map interactive selections onto the flattened text."""

from __future__ import annotations

import logging
from bisect import bisect_right

from .interval import Interval
from .text_run import BoundaryPoint, Selection
from .types import TextRunList

logger = logging.getLogger(__name__)


def _canonical_offset(point: BoundaryPoint, runs: TextRunList) -> int | None:
    """Return the flattened offset of ``point`` or ``None`` if outside.

    Args:
        point: Boundary point to resolve.
        runs: Text runs of the root container in document order.

    Returns:
        Cumulative length before the point's run plus its local offset.
    """

    if point.run < 0 or point.run >= len(runs):
        return None

    run = runs[point.run]
    if point.offset < 0 or point.offset > len(run.text):
        return None

    # Walk the runs rather than trusting ``run.start`` so hand-built runs
    # with stale offsets still map consistently.
    cumulative = 0
    for before in runs[: point.run]:
        cumulative += len(before.text)
    return cumulative + point.offset


def map_selection(
    selection: Selection | None, runs: TextRunList
) -> Interval | None:
    """Convert a selection into a forward-ordered interval.

    Args:
        selection: Snapshot of the anchor and focus points.
        runs: Text runs of the root container in document order.

    Returns:
        The interval covered by the selection, or ``None`` when the
        selection is missing, collapsed or not contained in ``runs``.
    """

    if selection is None or not runs:
        return None

    # Order the pair so that the start point precedes the end point.
    start_point, end_point = selection.anchor, selection.focus
    if start_point > end_point:
        start_point, end_point = end_point, start_point

    start = _canonical_offset(start_point, runs)
    end = _canonical_offset(end_point, runs)
    if start is None or end is None:
        logger.debug("Selection %s lies outside the root", selection)
        return None

    if start == end:
        return None

    return Interval(start, end)


def map_points(
    runs: TextRunList,
    start_run: int,
    start_offset: int,
    end_run: int,
    end_offset: int,
) -> Interval | None:
    """Map a fixed pair of points, such as an existing highlight's edges."""

    selection = Selection(
        BoundaryPoint(start_run, start_offset),
        BoundaryPoint(end_run, end_offset),
    )
    return map_selection(selection, runs)


def locate_offset(runs: TextRunList, offset: int) -> BoundaryPoint | None:
    """Return the boundary point for a flattened-text offset.

    Offsets on the border of two runs resolve to the start of the later
    run; the end of the text resolves to the end of the last run.

    Args:
        runs: Text runs in document order.
        offset: Offset in the flattened text.

    Returns:
        The matching boundary point, or ``None`` when out of range.
    """

    if not runs:
        return None

    total = runs[-1].end
    if offset < 0 or offset > total:
        return None

    if offset == total:
        last = len(runs) - 1
        return BoundaryPoint(last, len(runs[last].text))

    # Greatest run start that is <= offset. Empty runs share their start
    # with the following run, so bisecting to the right skips them.
    starts = [run.start for run in runs]
    index = bisect_right(starts, offset) - 1
    return BoundaryPoint(index, offset - runs[index].start)


def selection_for_interval(
    runs: TextRunList, interval: Interval
) -> Selection | None:
    """Build the synthetic selection spanning ``interval``.

    Used to re-open an annotation from a list rather than a live
    selection.
    """

    anchor = locate_offset(runs, interval.start)
    focus = locate_offset(runs, interval.end)
    if anchor is None or focus is None:
        return None
    return Selection(anchor, focus)
