"""Recompute annotation anchors against the current flattened text."""

from __future__ import annotations

import logging

from .annotation import Annotation
from .interval import AnchoredInterval, Interval
from .types import AnchoredIntervalList, AnnotationList, LiteralCursors

logger = logging.getLogger(__name__)


def _valid_range(annotation: Annotation, length: int) -> Interval | None:
    """Return the stored range if it fits inside a text of ``length``."""

    interval = annotation.range
    if interval is None:
        return None
    if 0 <= interval.start < interval.end <= length:
        return interval
    return None


def trim_interval(interval: Interval, text: str) -> Interval | None:
    """Shrink ``interval`` past leading and trailing whitespace.

    Args:
        interval: Span that lies inside ``text``.
        text: Flattened document text.

    Returns:
        The trimmed span, or ``None`` when only whitespace was covered.
    """

    start, end = interval.start, interval.end
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1

    if end <= start:
        return None
    return Interval(start, end)


def find_literal(
    snippet: str, text: str, cursors: LiteralCursors
) -> Interval | None:
    """Locate the next occurrence of ``snippet`` after its previous match.

    Args:
        snippet: Literal text to look for.
        text: Flattened document text.
        cursors: End offset of the last match of each snippet; updated on
            success.

    Returns:
        The span of the occurrence, or ``None`` when none is left.
    """

    if not snippet:
        return None

    index = text.find(snippet, cursors.get(snippet, 0))
    if index == -1:
        return None

    end = index + len(snippet)
    cursors[snippet] = end
    return Interval(index, end)


def resolve_interval(
    annotation: Annotation, text: str, cursors: LiteralCursors
) -> Interval | None:
    """Resolve the span an annotation currently anchors to.

    A stored range that fits the text wins and is trimmed of surrounding
    whitespace. Otherwise the selected text is searched for literally,
    continuing after the previous match of the same snippet so repeated
    snippets take successive occurrences.

    Args:
        annotation: Annotation to anchor.
        text: Flattened document text.
        cursors: Per-snippet scan positions shared across one pass.

    Returns:
        The anchored span, or ``None`` when the annotation is lost.
    """

    stored = _valid_range(annotation, len(text))
    if stored is not None:
        return trim_interval(stored, text)
    return find_literal(annotation.selected_text, text, cursors)


def reconcile(annotations: AnnotationList, text: str) -> AnchoredIntervalList:
    """Return validated intervals for every anchorable annotation.

    Annotations that cannot be anchored are left out of the result; the
    caller keeps them in storage untouched.

    Args:
        annotations: Annotations in insertion order.
        text: Current flattened document text.

    Returns:
        Intervals in insertion order, each tagged with its annotation id.
    """

    cursors: LiteralCursors = {}
    result: AnchoredIntervalList = []

    for annotation in annotations:
        interval = resolve_interval(annotation, text, cursors)
        if interval is None:
            logger.debug("Annotation %s lost its anchor", annotation.id)
            continue
        result.append(
            AnchoredInterval(interval.start, interval.end, id=annotation.id)
        )

    return result


def orphaned(annotations: AnnotationList, text: str) -> AnnotationList:
    """Return the annotations a reconciliation pass cannot anchor."""

    anchored = {interval.id for interval in reconcile(annotations, text)}
    return [a for a in annotations if a.id not in anchored]
