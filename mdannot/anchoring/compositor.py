"""Split text runs into highlight segments."""

from __future__ import annotations

from bisect import bisect_right

from .interval import Interval
from .segment import RunSegments, Segment
from .text_run import TextRun
from .types import (
    AnchoredIntervalList,
    RunSegmentsList,
    SegmentList,
    TextRunList,
)


def _breakpoints(
    intervals: AnchoredIntervalList, draft: Interval | None
) -> list[int]:
    """Return the sorted unique interval boundaries."""

    points: set[int] = set()
    for interval in intervals:
        points.add(interval.start)
        points.add(interval.end)
    if draft is not None:
        points.add(draft.start)
        points.add(draft.end)
    return sorted(points)


def _intersects_any(run: TextRun, spans: list[Interval]) -> bool:
    return any(span.start < run.end and span.end > run.start for span in spans)


def _covering_ids(
    intervals: AnchoredIntervalList, start: int, end: int
) -> tuple[str, ...]:
    """Return ids of the intervals that fully contain ``[start, end)``."""

    return tuple(
        interval.id for interval in intervals if interval.contains(start, end)
    )


def _split_run(
    run: TextRun,
    breakpoints: list[int],
    intervals: AnchoredIntervalList,
    draft: Interval | None,
) -> SegmentList:
    """Partition ``run`` at the breakpoints strictly inside it.

    Args:
        run: Run intersecting at least one interval or the draft.
        breakpoints: Sorted unique boundaries of all intervals.
        intervals: Validated annotation intervals.
        draft: Interval of the uncommitted selection, if any.

    Returns:
        Segments covering the whole run in order.
    """

    # Breakpoints strictly inside the run become local cut positions.
    first = bisect_right(breakpoints, run.start)
    inner = [p for p in breakpoints[first:] if p < run.end]
    edges = [run.start, *inner, run.end]

    segments: SegmentList = []
    for seg_start, seg_end in zip(edges, edges[1:]):
        text = run.text[seg_start - run.start : seg_end - run.start]

        # Whitespace-only pieces, line breaks included, render plain.
        if not text.strip():
            segments.append(Segment(seg_start, seg_end, text))
            continue

        ids = _covering_ids(intervals, seg_start, seg_end)
        active = draft is not None and draft.contains(seg_start, seg_end)
        segments.append(Segment(seg_start, seg_end, text, ids, active))

    return segments


def compose_segments(
    runs: TextRunList,
    intervals: AnchoredIntervalList,
    draft: Interval | None = None,
) -> RunSegmentsList:
    """Partition every run into plain and highlighted segments.

    Overlapping intervals are handled: a segment covered by several
    annotations carries all of their ids and reports ``is_multiple``.
    The function is pure, so equal input always yields equal output.

    Args:
        runs: Text runs backing the flattened text, in render order.
        intervals: Validated intervals from the reconciler.
        draft: Interval of the in-progress selection. It marks segments
            as ``active`` and is never treated as an annotation.

    Returns:
        One ``RunSegments`` per run, in run order.
    """

    breakpoints = _breakpoints(intervals, draft)
    spans: list[Interval] = list(intervals)
    if draft is not None:
        spans.append(draft)

    result: RunSegmentsList = []
    for index, run in enumerate(runs):
        if run.start == run.end:
            result.append(RunSegments(index))
            continue

        if not _intersects_any(run, spans):
            plain = Segment(run.start, run.end, run.text)
            result.append(RunSegments(index, [plain]))
            continue

        segments = _split_run(run, breakpoints, intervals, draft)
        result.append(RunSegments(index, segments))

    return result


def highlighted(composed: RunSegmentsList) -> SegmentList:
    """Return every non-plain segment across all runs."""

    return [
        segment
        for run in composed
        for segment in run.segments
        if not segment.is_plain
    ]


def segments_for(composed: RunSegmentsList, annotation_id: str) -> SegmentList:
    """Return the segments tagged with ``annotation_id``.

    This is how an interaction on a rendered segment is traced back to
    the annotation it belongs to.
    """

    return [
        segment
        for run in composed
        for segment in run.segments
        if annotation_id in segment.ids
    ]
