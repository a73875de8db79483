"""Insertion-time guard against overlapping anchors."""

from __future__ import annotations

from collections.abc import Iterable

from .interval import Interval


def has_overlap(proposed: Interval, existing: Iterable[Interval]) -> bool:
    """Return whether ``proposed`` intersects any ``existing`` interval.

    The test is the usual half-open intersection and therefore symmetric:
    touching spans such as ``[0, 5)`` and ``[5, 9)`` do not overlap.

    Args:
        proposed: Interval of the annotation about to be created.
        existing: Intervals already anchored in the current text.

    Returns:
        ``True`` when the new annotation must be rejected.
    """

    return any(proposed.intersects(interval) for interval in existing)
