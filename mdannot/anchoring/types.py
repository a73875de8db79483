"""Common type aliases for anchoring structures."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .annotation import Annotation  # noqa: F401
    from .interval import AnchoredInterval  # noqa: F401
    from .segment import RunSegments, Segment  # noqa: F401
    from .text_run import TextRun  # noqa: F401


AnnotationList = list["Annotation"]
AnchoredIntervalList = list["AnchoredInterval"]
TextRunList = list["TextRun"]
SegmentList = list["Segment"]
RunSegmentsList = list["RunSegments"]
LineStarts = list[int]

# Per-literal scan cursor: end offset of the last match of each snippet.
LiteralCursors = dict[str, int]
