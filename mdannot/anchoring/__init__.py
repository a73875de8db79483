"""Annotation anchoring and highlight reconciliation engine."""

from .annotation import Annotation
from .compositor import compose_segments, highlighted, segments_for
from .feedback import (
    FeedbackConfig,
    export_feedback,
    generate_feedback_text,
    line_number,
    line_starts,
)
from .interval import AnchoredInterval, Interval
from .offset_mapper import (
    locate_offset,
    map_points,
    map_selection,
    selection_for_interval,
)
from .overlap import has_overlap
from .reconciler import orphaned, reconcile, resolve_interval
from .segment import RunSegments, Segment
from .text_run import BoundaryPoint, Selection, TextRun, build_runs, flatten

__all__ = [
    "AnchoredInterval",
    "Annotation",
    "BoundaryPoint",
    "FeedbackConfig",
    "Interval",
    "RunSegments",
    "Segment",
    "Selection",
    "TextRun",
    "build_runs",
    "compose_segments",
    "export_feedback",
    "flatten",
    "generate_feedback_text",
    "has_overlap",
    "highlighted",
    "line_number",
    "line_starts",
    "locate_offset",
    "map_points",
    "map_selection",
    "orphaned",
    "reconcile",
    "resolve_interval",
    "segments_for",
    "selection_for_interval",
]
